"""Tests for the checkpoint stores."""

import asyncio
import json

import pytest

from vocabpro.errors import CheckpointError
from vocabpro.importer import JSONCheckpointStore, MemoryCheckpointStore
from vocabpro.models import ImportQueue, RawEntry


def make_queue():
    queue = ImportQueue.create([RawEntry(front="apple"), RawEntry(front="pear")], "Unit 1", "en")
    queue.advance(1)
    return queue


def test_json_store_round_trip(tmp_path):
    store = JSONCheckpointStore(str(tmp_path), "queue_test")

    assert asyncio.run(store.load()) is None
    assert asyncio.run(store.exists()) is False

    asyncio.run(store.save(make_queue()))

    assert (tmp_path / "queue_test.json").exists()
    assert asyncio.run(store.exists()) is True
    loaded = asyncio.run(store.load())
    assert loaded.batch_id == "Unit 1"
    assert loaded.processed_count == 1
    assert [e.front for e in loaded.entries] == ["apple", "pear"]


def test_json_store_overwrites_and_leaves_no_temp_files(tmp_path):
    store = JSONCheckpointStore(str(tmp_path), "slot")
    queue = make_queue()

    asyncio.run(store.save(queue))
    queue.advance(2)
    asyncio.run(store.save(queue))

    assert [p.name for p in tmp_path.iterdir()] == ["slot.json"]
    data = json.loads((tmp_path / "slot.json").read_text(encoding="utf-8"))
    assert data["processedCount"] == 2


def test_json_store_clear(tmp_path):
    store = JSONCheckpointStore(str(tmp_path), "slot")
    asyncio.run(store.save(make_queue()))

    asyncio.run(store.clear())
    asyncio.run(store.clear())

    assert asyncio.run(store.load()) is None


def test_corrupt_checkpoint_raises(tmp_path):
    (tmp_path / "slot.json").write_text("{not json", encoding="utf-8")
    store = JSONCheckpointStore(str(tmp_path), "slot")

    with pytest.raises(CheckpointError):
        asyncio.run(store.load())


def test_undecodable_checkpoint_raises(tmp_path):
    (tmp_path / "slot.json").write_bytes(b"\xff\xfe garbage")
    store = JSONCheckpointStore(str(tmp_path), "slot")

    with pytest.raises(CheckpointError):
        asyncio.run(store.load())


def test_unwritable_directory_raises(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    store = JSONCheckpointStore(str(blocker / "sub"), "slot")

    with pytest.raises(CheckpointError):
        asyncio.run(store.save(make_queue()))


def test_memory_store_round_trip():
    store = MemoryCheckpointStore()
    queue = make_queue()

    asyncio.run(store.save(queue))
    queue.advance(2)  # later mutation is not visible in the stored copy

    loaded = asyncio.run(store.load())
    assert loaded.processed_count == 1
    asyncio.run(store.clear())
    assert asyncio.run(store.exists()) is False
