"""Tests for batch operations and guest-to-cloud migration."""

from conftest import FakeSink
from vocabpro.models import EnrichedCard
from vocabpro.services import CardService, SQLiteCardRepository


def card(front, batch="Unit 1", language="en"):
    return EnrichedCard(owner="u1", front=front, back=f"tr-{front}", batch_id=batch, language=language)


def test_migrate_copies_every_batch(tmp_path):
    local = SQLiteCardRepository(str(tmp_path / "local.db"))
    local.insert([card("apple"), card("pear")])
    local.insert([card("hola", batch="Spanish", language="es")])
    remote = FakeSink()

    stats = CardService(local).migrate("u1", remote)

    assert stats == {"copied": 3, "skipped": 0}
    assert remote.identities() == {
        ("en", "Unit 1", "apple"),
        ("en", "Unit 1", "pear"),
        ("es", "Spanish", "hola"),
    }


def test_migrate_is_repeatable(tmp_path):
    local = SQLiteCardRepository(str(tmp_path / "local.db"))
    local.insert([card("apple"), card("pear")])
    remote = FakeSink()
    remote.insert([card("apple")])
    service = CardService(local)

    first = service.migrate("u1", remote)
    second = service.migrate("u1", remote)

    assert first == {"copied": 1, "skipped": 1}
    assert second == {"copied": 0, "skipped": 2}
    assert len(remote.rows) == 2


def test_migrate_handles_duplicates_reported_by_target(tmp_path):
    local = SQLiteCardRepository(str(tmp_path / "local.db"))
    local.insert([card("apple"), card("pear")])
    remote = FakeSink(hide_existing=True)
    remote.insert([card("pear")])

    stats = CardService(local).migrate("u1", remote)

    assert stats == {"copied": 1, "skipped": 1}
    assert len(remote.rows) == 2


def test_batch_operations_delegate_to_repository():
    sink = FakeSink()
    sink.insert([card("apple"), card("plum", batch="B")])
    service = CardService(sink)

    assert {b["batch_id"] for b in service.list_batches("u1")} == {"Unit 1", "B"}
    assert service.get_batch("u1", "B")["front"].tolist() == ["plum"]
    assert service.delete_batch("u1", "B") == 1
    assert service.get_batch("u1", "B").empty
