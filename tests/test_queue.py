"""Tests for the import queue model."""

import pytest

from vocabpro.errors import CheckpointError
from vocabpro.models import ImportQueue, RawEntry


def entries(count):
    return [RawEntry(front=f"w{i}") for i in range(count)]


def test_create_caps_entries_at_limit():
    queue = ImportQueue.create(entries(250_000), "Big", "en")

    assert queue.total == 200_000
    assert queue.entries[-1].front == "w199999"
    assert queue.processed_count == 0


def test_create_validates_batch_and_language():
    with pytest.raises(ValueError):
        ImportQueue.create(entries(1), "", "en")
    with pytest.raises(ValueError):
        ImportQueue.create(entries(1), "Batch", "de")


def test_cursor_only_moves_forward_and_is_clamped():
    queue = ImportQueue.create(entries(10), "B", "en")

    queue.advance(4)
    queue.advance(25)

    assert queue.processed_count == 10
    assert queue.is_complete
    with pytest.raises(ValueError):
        queue.advance(3)


def test_serialized_form_uses_checkpoint_keys():
    queue = ImportQueue.create([RawEntry(front="apple", ipa="/ˈæp.əl/")], "B", "en")
    queue.advance(1)

    data = queue.to_dict()

    assert set(data) == {"batchId", "targetLanguage", "entries", "processedCount", "total", "timestamp"}
    assert data["entries"] == [{"front": "apple", "ipa": "/ˈæp.əl/", "definition": "", "example": ""}]

    restored = ImportQueue.from_dict(data)
    assert restored.entries == queue.entries
    assert restored.processed_count == 1


@pytest.mark.parametrize("payload", [
    [],
    {"targetLanguage": "en", "entries": []},
    {"batchId": "B", "targetLanguage": "xx", "entries": []},
    {"batchId": "B", "targetLanguage": "en", "entries": "nope"},
    {"batchId": "B", "targetLanguage": "en", "entries": [], "processedCount": -1},
    {"batchId": "B", "targetLanguage": "en", "entries": [], "processedCount": "3"},
    {"batchId": "B", "targetLanguage": "en", "entries": ["not an object"]},
])
def test_from_dict_rejects_invalid_payloads(payload):
    with pytest.raises(CheckpointError):
        ImportQueue.from_dict(payload)


def test_from_dict_clamps_cursor():
    queue = ImportQueue.from_dict({
        "batchId": "B",
        "targetLanguage": "zh",
        "entries": [{"front": "你好"}],
        "processedCount": 9,
    })

    assert queue.processed_count == 1
