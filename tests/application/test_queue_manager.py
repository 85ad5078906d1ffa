from unittest.mock import MagicMock

import pytest

from mneme.application.persistence import QueueSnapshotRepository
from mneme.application.queue_manager import WordQueueManager
from mneme.application.stats import AnswerHistory
from mneme.domain.constants import LEARNING_QUEUE_KEY
from mneme.domain.models import QueueCounts, RecordResult, Word
from mneme.domain.ports import KeyValueStore


def make_word(word_id: str) -> Word:
    return Word(id=word_id, text=f"text-{word_id}", meaning=f"meaning-{word_id}")


def _priorities(queue: WordQueueManager) -> dict[str, int]:
    return {q.word_id: q.priority for q in queue.active_words()}


# --- Loading ---


def test_load_words_assigns_ascending_priorities(queue):
    inserted = queue.load_words([make_word("a"), make_word("b"), make_word("c")])

    assert inserted == 3
    assert _priorities(queue) == {"a": 0, "b": 1, "c": 2}
    assert queue.active_count == 3
    assert queue.mastered_count == 0


def test_load_words_skips_known_and_repeated_ids(queue):
    queue.load_words([make_word("a"), make_word("b")])

    inserted = queue.add_words([make_word("a"), make_word("c"), make_word("c")])

    assert inserted == 1
    assert queue.get_all_word_ids() == ["a", "b", "c"]


def test_add_words_skips_mastered_ids(queue):
    queue.load_words([make_word("a"), make_word("b")])
    queue.record_answer("a", True)
    queue.record_answer("a", True)

    queue.add_words([make_word("a")])

    assert queue.get_all_word_ids() == ["b", "a"]
    assert queue.get_mastered_word_ids() == ["a"]


def test_add_words_continues_after_highest_active_priority(queue):
    queue.load_words([make_word("a"), make_word("b"), make_word("c")])
    queue.record_answer("c", True)
    queue.record_answer("c", True)  # c (priority 2) leaves the active queue

    queue.add_words([make_word("d"), make_word("e")])

    assert _priorities(queue) == {"a": 0, "b": 1, "d": 2, "e": 3}


def test_add_words_on_empty_active_starts_at_zero(queue):
    queue.load_words([make_word("a")])
    queue.record_answer("a", True)
    queue.record_answer("a", True)

    queue.add_words([make_word("b")])

    assert _priorities(queue) == {"b": 0}


def test_load_empty_batch_is_not_an_error(queue, store):
    assert queue.load_words([]) == 0
    assert store.get(LEARNING_QUEUE_KEY)["active"] == []


def test_ids_stay_unique_across_many_merges(queue):
    for batch in (["a", "b"], ["b", "c"], ["a", "c", "d"], ["d", "e", "a"]):
        queue.add_words([make_word(i) for i in batch])
        queue.record_answer(batch[0], True)
        queue.record_answer(batch[0], True)

    ids = queue.get_all_word_ids()
    assert len(ids) == len(set(ids))
    assert set(ids) == {"a", "b", "c", "d", "e"}


# --- Recording answers ---


def test_record_answer_unknown_word_is_noop(queue, store):
    queue.load_words([make_word("a")])
    before = store.get(LEARNING_QUEUE_KEY)

    result = queue.record_answer("missing", True, 500)

    assert result == RecordResult(mastered=False)
    assert store.get(LEARNING_QUEUE_KEY) == before
    assert queue.answer_history() == ()


def test_record_answer_correct_then_wrong_resets_counters(queue, clock):
    queue.load_words([make_word("a")])
    entry = queue.active_words()[0]

    queue.record_answer("a", True)
    assert (entry.correct_count, entry.error_count) == (1, 0)
    assert entry.last_shown == clock.now

    queue.record_answer("a", False)
    assert (entry.correct_count, entry.error_count) == (0, 1)

    queue.record_answer("a", False)
    assert (entry.correct_count, entry.error_count) == (0, 2)

    queue.record_answer("a", True)
    assert (entry.correct_count, entry.error_count) == (1, 0)


def test_mastery_moves_word_exactly_once(queue):
    queue.load_words([make_word("a"), make_word("b")])

    assert queue.record_answer("a", True).mastered is False
    assert queue.record_answer("a", True).mastered is True

    assert [q.word_id for q in queue.active_words()] == ["b"]
    assert queue.get_mastered_word_ids() == ["a"]

    # Further answers for a mastered word are ignored
    assert queue.record_answer("a", False).mastered is False
    assert queue.get_mastered_word_ids() == ["a"]
    assert queue.mastered_words()[0].error_count == 0


def test_custom_mastery_threshold(make_queue):
    queue = make_queue(mastery_threshold=3)
    queue.load_words([make_word("a")])

    assert not queue.record_answer("a", True).mastered
    assert not queue.record_answer("a", True).mastered
    assert queue.record_answer("a", True).mastered


def test_record_answer_appends_history_only_with_response_time(queue, clock):
    queue.load_words([make_word("a")])

    queue.record_answer("a", False)
    queue.record_answer("a", True, 850)

    history = queue.answer_history()
    assert len(history) == 1
    assert history[0].word_id == "a"
    assert history[0].correct is True
    assert history[0].response_time_ms == 850
    assert history[0].answered_at == clock.now


def test_history_is_bounded_to_most_recent(make_queue):
    queue = make_queue(history=AnswerHistory(max_size=3))
    queue.load_words([make_word("a")])

    for ms in (100, 200, 300, 400, 500):
        queue.record_answer("a", False, ms)

    assert [r.response_time_ms for r in queue.answer_history()] == [300, 400, 500]


# --- Reset ---


def test_reset_clears_everything(queue, store):
    queue.load_words([make_word("a"), make_word("b")])
    queue.record_answer("a", True, 100)
    queue.record_answer("a", True, 100)
    queue.set_target_mastery_count(5)

    queue.reset()

    assert queue.get_all_word_ids() == []
    assert queue.answer_history() == ()
    assert queue.target_mastery_count is None
    assert LEARNING_QUEUE_KEY not in store


def test_reset_history_keeps_queue(queue):
    queue.load_words([make_word("a")])
    queue.record_answer("a", False, 100)

    queue.reset_history()

    assert queue.answer_history() == ()
    assert queue.get_all_word_ids() == ["a"]
    assert queue.get_error_prone_word_ids() == ["a"]


# --- Selection ---


def test_pick_next_on_empty_queue(queue):
    assert queue.pick_next() is None


def test_error_recovery_scenario(queue):
    queue.load_words([make_word("A"), make_word("B")])

    queue.record_answer("B", False)
    assert queue.pick_next().word_id == "B"

    queue.record_answer("B", True)
    result = queue.record_answer("B", True)

    assert result.mastered is True
    assert [q.word_id for q in queue.active_words()] == ["A"]
    assert queue.get_mastered_word_ids() == ["B"]
    assert queue.pick_next().word_id == "A"


def test_appended_words_follow_existing_priority(queue):
    queue.load_words([make_word("A")])

    queue.add_words([make_word("C")])

    assert _priorities(queue)["C"] == 1
    assert queue.pick_next().word_id == "A"


def test_generate_options_uses_whole_pool(queue):
    queue.load_words([make_word("a"), make_word("b")])
    queue.record_answer("b", True)
    queue.record_answer("b", True)
    target = queue.active_words()[0]

    options = queue.generate_options(target, "word-to-meaning")

    assert len(options) == 4
    assert "meaning-a" in options
    assert "meaning-b" in options
    assert options.count("(无释义)") == 2


def test_needs_more_words(queue):
    queue.set_batch_size(2)
    assert queue.needs_more_words()

    queue.load_words([make_word("a"), make_word("b")])
    assert not queue.needs_more_words()


def test_set_batch_size_rejects_non_positive(queue):
    with pytest.raises(ValueError):
        queue.set_batch_size(0)


def test_set_target_rejects_negative(queue):
    with pytest.raises(ValueError):
        queue.set_target_mastery_count(-1)


def test_should_prefetch_without_target(queue):
    queue.load_words([make_word(i) for i in "abc"])
    assert not queue.should_prefetch()

    queue.record_answer("a", True)
    queue.record_answer("a", True)
    assert queue.should_prefetch()


def test_should_prefetch_stops_at_target(queue):
    queue.load_words([make_word("a"), make_word("b")])
    queue.set_target_mastery_count(1)
    assert queue.should_prefetch()

    queue.record_answer("a", True)
    queue.record_answer("a", True)

    assert not queue.should_prefetch()


# --- Analytics ---


def test_metrics_on_fresh_queue_are_zero(queue):
    metrics = queue.compute_session_metrics()

    assert metrics.overall_accuracy == 0
    assert metrics.recent_accuracy == 0
    assert metrics.average_response_time_ms == 0
    assert metrics.recent_average_response_time_ms == 0


def test_error_prone_ids_and_session_performance(queue):
    queue.load_words([make_word(i) for i in "abc"])
    queue.set_target_mastery_count(3)
    queue.record_answer("b", False, 1000)
    queue.record_answer("c", False, 2000)
    queue.record_answer("c", True, 500)

    assert queue.get_error_prone_word_ids() == ["b"]

    performance = queue.build_session_performance()
    assert performance.error_prone_word_ids == ["b"]
    assert performance.overall_accuracy == pytest.approx(1 / 3)
    assert performance.mastered_count == 0
    assert performance.target_mastery_count == 3


# --- Observers ---


def test_observers_receive_counts_after_each_mutation(queue):
    seen: list[QueueCounts] = []
    unsubscribe = queue.subscribe(seen.append)

    queue.load_words([make_word("a"), make_word("b")])
    queue.record_answer("a", True)
    queue.record_answer("a", True)
    queue.reset()

    assert seen == [
        QueueCounts(active=2, mastered=0),
        QueueCounts(active=2, mastered=0),
        QueueCounts(active=1, mastered=1),
        QueueCounts(active=0, mastered=0),
    ]

    unsubscribe()
    queue.load_words([make_word("c")])
    assert len(seen) == 4


# --- Persistence ---


def test_every_mutation_is_persisted(queue, store):
    queue.load_words([make_word("a")])
    assert store.get(LEARNING_QUEUE_KEY)["active"][0]["correctCount"] == 0

    queue.record_answer("a", False)
    assert store.get(LEARNING_QUEUE_KEY)["active"][0]["errorCount"] == 1

    queue.record_answer("a", True)
    queue.record_answer("a", True)
    saved = store.get(LEARNING_QUEUE_KEY)
    assert saved["active"] == []
    assert saved["mastered"][0]["word"]["id"] == "a"


def test_state_is_restored_on_construction(make_queue):
    first = make_queue(batch_size=7)
    first.load_words([make_word("a"), make_word("b")])
    first.record_answer("a", False)
    first.record_answer("b", True)
    first.record_answer("b", True)

    second = make_queue()

    assert second.batch_size == 7
    assert [q.word_id for q in second.active_words()] == ["a"]
    assert second.active_words()[0].error_count == 1
    assert second.get_mastered_word_ids() == ["b"]


def test_storage_failure_keeps_memory_state(caplog, clock):
    store = MagicMock(spec=KeyValueStore)
    store.get.return_value = None
    store.set.side_effect = OSError("disk full")
    queue = WordQueueManager(snapshots=QueueSnapshotRepository(store), clock=clock)

    queue.load_words([make_word("a")])
    result = queue.record_answer("a", True)

    assert result.mastered is False
    assert queue.active_words()[0].correct_count == 1
    assert "Failed to persist learning queue" in caplog.text
