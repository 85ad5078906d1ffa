"""
Snapshot persistence for the learning queue.

The queue is stored under a single key as
`{"active": [...], "mastered": [...], "batchSize": n}` with camelCase entry
fields, the same shape the web client writes. Loading validates the shape,
back-fills fields that older snapshots lack, and treats anything unparseable
as an empty queue.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from mneme.domain.constants import LEARNING_QUEUE_KEY
from mneme.domain.models import QueuedWord, Word
from mneme.domain.ports import KeyValueStore

logger = logging.getLogger(__name__)


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class WordPayload(_Payload):
    id: str
    text: str
    meaning: str
    pronunciation: str | None = None
    part_of_speech: str | None = None
    difficulty: int = 1
    examples: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, word: Word) -> "WordPayload":
        return cls(
            id=word.id,
            text=word.text,
            meaning=word.meaning,
            pronunciation=word.pronunciation,
            part_of_speech=word.part_of_speech,
            difficulty=word.difficulty,
            examples=list(word.examples),
            tags=list(word.tags),
        )

    def to_domain(self) -> Word:
        return Word(
            id=self.id,
            text=self.text,
            meaning=self.meaning,
            pronunciation=self.pronunciation,
            part_of_speech=self.part_of_speech,
            difficulty=self.difficulty,
            examples=list(self.examples),
            tags=list(self.tags),
        )


class QueuedWordPayload(_Payload):
    word: WordPayload
    correct_count: int = Field(default=0, ge=0)
    error_count: int = Field(default=0, ge=0)
    last_shown: int = Field(default=0, ge=0)
    priority: int

    @model_validator(mode="after")
    def errors_clear_streak(self) -> "QueuedWordPayload":
        # A wrong answer resets the correct streak; stored data may not agree.
        if self.correct_count and self.error_count:
            self.correct_count = 0
        return self

    @classmethod
    def from_domain(cls, entry: QueuedWord) -> "QueuedWordPayload":
        return cls(
            word=WordPayload.from_domain(entry.word),
            correct_count=entry.correct_count,
            error_count=entry.error_count,
            last_shown=entry.last_shown,
            priority=entry.priority,
        )

    def to_domain(self) -> QueuedWord:
        return QueuedWord(
            word=self.word.to_domain(),
            correct_count=self.correct_count,
            error_count=self.error_count,
            last_shown=self.last_shown,
            priority=self.priority,
        )


class QueueSnapshot(_Payload):
    active: list[QueuedWordPayload] = Field(default_factory=list)
    mastered: list[QueuedWordPayload] = Field(default_factory=list)
    batch_size: int | None = Field(default=None, ge=1)

    @model_validator(mode="before")
    @classmethod
    def backfill_legacy_fields(cls, data: Any) -> Any:
        """
        Snapshots written before priorities existed get their array index.
        A missing or unusable batchSize is dropped so the configured size applies.
        """
        if not isinstance(data, dict):
            return data

        data = dict(data)
        for name in ("active", "mastered"):
            entries = data.get(name)
            if entries is None:
                data.pop(name, None)
                continue
            if not isinstance(entries, list):
                continue
            data[name] = [
                {**entry, "priority": index}
                if isinstance(entry, dict) and entry.get("priority") is None
                else entry
                for index, entry in enumerate(entries)
            ]
        batch_size = data.get("batchSize")
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
            data.pop("batchSize", None)
        return data


@dataclass
class QueueState:
    """Queue contents restored from storage."""

    active: list[QueuedWord] = field(default_factory=list)
    mastered: list[QueuedWord] = field(default_factory=list)
    batch_size: int | None = None


class QueueSnapshotRepository:
    """
    Reads and writes queue snapshots through a KeyValueStore.

    The in-memory queue is authoritative: write failures are logged and
    otherwise ignored.
    """

    def __init__(self, store: KeyValueStore, key: str = LEARNING_QUEUE_KEY):
        self._store = store
        self.key = key

    def save(
        self,
        active: list[QueuedWord],
        mastered: list[QueuedWord],
        batch_size: int,
    ) -> None:
        snapshot = QueueSnapshot(
            active=[QueuedWordPayload.from_domain(q) for q in active],
            mastered=[QueuedWordPayload.from_domain(q) for q in mastered],
            batch_size=batch_size,
        )
        try:
            self._store.set(self.key, snapshot.model_dump(by_alias=True))
        except Exception as e:
            logger.warning(f"Failed to persist learning queue: {e}")

    def load(self) -> QueueState | None:
        """
        Restore the persisted queue.

        Returns None when nothing is stored or the stored data is malformed.
        """
        raw = self._store.get(self.key, None)
        if raw is None:
            return None

        try:
            snapshot = QueueSnapshot.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                f"Discarding malformed learning queue snapshot ({e.error_count()} errors)"
            )
            return None

        seen: set[str] = set()
        state = QueueState(batch_size=snapshot.batch_size)
        for payloads, target in ((snapshot.active, state.active), (snapshot.mastered, state.mastered)):
            for payload in payloads:
                if payload.word.id in seen:
                    logger.debug(f"Dropping duplicate word {payload.word.id} from snapshot")
                    continue
                seen.add(payload.word.id)
                target.append(payload.to_domain())

        return state

    def clear(self) -> None:
        try:
            self._store.remove(self.key)
        except Exception as e:
            logger.warning(f"Failed to remove learning queue: {e}")
