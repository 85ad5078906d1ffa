"""
Word source backed by a local YAML or JSON word list.

Accepted layouts:

    - {id: w1, text: apple, meaning: 苹果}
    - ...

or a mapping with a `words` list and an optional `batchSize` hint. File order
is the priority order.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from mneme.application.persistence import WordPayload
from mneme.domain.constants import DEFAULT_BATCH_SIZE
from mneme.domain.models import StudyBatch, Word
from mneme.domain.ports import WordSource
from mneme.domain.stats.models import SessionPerformance

logger = logging.getLogger(__name__)


class WordSourceError(RuntimeError):
    """The word list could not be read or parsed."""


def load_word_file(path: Path) -> tuple[list[Word], int | None]:
    """
    Parse a word list file.

    Returns the words in file order (first occurrence wins for repeated ids)
    and the optional batch size hint.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise WordSourceError(f"Cannot read word list {path}: {e}") from e
    except yaml.YAMLError as e:
        raise WordSourceError(f"Invalid word list {path}: {e}") from e

    batch_hint: Any = None
    if isinstance(raw, dict):
        batch_hint = raw.get("batchSize", raw.get("batch_size"))
        raw = raw.get("words")

    if not isinstance(raw, list):
        raise WordSourceError(f"Word list {path} must contain a list of words")

    if batch_hint is not None and (not isinstance(batch_hint, int) or batch_hint < 1):
        raise WordSourceError(f"Invalid batch size in {path}: {batch_hint!r}")

    words: list[Word] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw):
        if isinstance(entry, dict) and isinstance(entry.get("id"), int):
            entry = {**entry, "id": str(entry["id"])}
        try:
            word = WordPayload.model_validate(entry).to_domain()
        except ValidationError as e:
            raise WordSourceError(f"Invalid word #{index + 1} in {path}: {e}") from e
        if word.id in seen:
            logger.debug(f"Skipping repeated word id {word.id} in {path}")
            continue
        seen.add(word.id)
        words.append(word)

    return words, batch_hint


class FileWordSource(WordSource):
    """Serves batches of unseen words from a word list, in file order."""

    def __init__(
        self,
        path: Path,
        batch_size: int | None = None,
        default_batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Args:
            path: Word list file.
            batch_size: Explicit batch size; overrides the file's hint.
            default_batch_size: Used when neither is given.
        """
        self.path = Path(path)
        self._words, hint = load_word_file(self.path)
        self.batch_size = batch_size or hint or default_batch_size
        self._hinted = hint is not None or batch_size is not None
        logger.debug(f"Loaded {len(self._words)} words from {self.path}")

    @property
    def words(self) -> list[Word]:
        return list(self._words)

    def fetch_study_words(self) -> StudyBatch:
        return StudyBatch(
            words=self._words[: self.batch_size],
            batch_size=self.batch_size if self._hinted else None,
        )

    def fetch_next_words(
        self,
        exclude_ids: list[str],
        mastered_ids: list[str],
        performance: SessionPerformance | None = None,
    ) -> list[Word]:
        excluded = set(exclude_ids) | set(mastered_ids)
        fresh = [w for w in self._words if w.id not in excluded]
        return fresh[: self.batch_size]
