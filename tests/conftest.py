"""Shared fakes for the import pipeline tests."""

from typing import Dict, List, Optional, Sequence, Set, Tuple

import pandas as pd
import pytest

from vocabpro.errors import CheckpointError, DuplicateCardError, PersistenceError
from vocabpro.importer import EnrichmentClient, MemoryCheckpointStore, ParseResult, SmartImporter
from vocabpro.models import EnrichedCard, EnrichmentResult, RawEntry
from vocabpro.services.repository import CARD_COLUMNS, BaseCardRepository

OWNER = "user-1"


def make_entries(count: int, prefix: str = "word") -> List[RawEntry]:
    return [RawEntry(front=f"{prefix}{i}", ipa=f"/{prefix}{i}/") for i in range(count)]


class FakeParser:
    def __init__(self, entries: List[RawEntry], warnings: Optional[List[str]] = None):
        self.entries = entries
        self.warnings = warnings or []
        self.calls = 0

    def parse(self, data: bytes) -> ParseResult:
        self.calls += 1
        return ParseResult(entries=list(self.entries), warnings=list(self.warnings))


class FakeEnrichmentService:
    """
    Returns a canned result per word.

    ``failures`` maps a word to the exceptions raised on its successive calls;
    ``always_fail`` maps a word to an exception raised on every call.
    """

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []
        self.failures: Dict[str, List[Exception]] = {}
        self.always_fail: Dict[str, Exception] = {}
        self.overrides: Dict[str, EnrichmentResult] = {}

    async def translate_and_enrich(self, words: List[str], language: str) -> List[EnrichmentResult]:
        word = words[0]
        self.calls.append((word, language))
        if word in self.always_fail:
            raise self.always_fail[word]
        pending = self.failures.get(word)
        if pending:
            raise pending.pop(0)
        if word in self.overrides:
            return [self.overrides[word]]
        return [EnrichmentResult(
            word=word,
            translation=f"tr-{word}",
            definition=f"definition of {word}",
            example=f"An example with {word}.",
            ipa="",
            audio=f"https://audio.example/{word}-us.mp3",
        )]


class FakeSink(BaseCardRepository):
    """
    In-memory repository with the same unique key as the SQLite table.

    ``fail_on_insert`` makes the Nth insert call (1-based) raise a
    non-duplicate PersistenceError. ``hide_existing`` makes existing_keys
    return nothing so duplicates surface at insert time.
    """

    def __init__(self, fail_on_insert: Optional[int] = None, hide_existing: bool = False):
        self.rows: List[Dict[str, str]] = []
        self.insert_calls = 0
        self.fail_on_insert = fail_on_insert
        self.hide_existing = hide_existing

    def _keys(self) -> Set[Tuple[str, str, str, str]]:
        return {(r["user_id"], r["category"], r["batch_id"], r["front"].strip().lower()) for r in self.rows}

    def insert(self, cards: Sequence[EnrichedCard]) -> int:
        self.insert_calls += 1
        if self.fail_on_insert == self.insert_calls:
            raise PersistenceError("connection reset")

        keys = self._keys()
        new_rows = []
        for card in cards:
            key = (card.owner, card.language, card.batch_id, card.word_key)
            if key in keys:
                raise DuplicateCardError(f"duplicate key value violates unique constraint: {card.front}")
            keys.add(key)
            new_rows.append(card.to_row())
        self.rows.extend(new_rows)
        return len(new_rows)

    def existing_keys(self, owner: str, language: str, batch_id: str) -> Set[str]:
        if self.hide_existing:
            return set()
        return {k[3] for k in self._keys() if k[:3] == (owner, language, batch_id)}

    def get_batch(self, owner: str, batch_id: str) -> pd.DataFrame:
        rows = [r for r in self.rows if r["user_id"] == owner and r["batch_id"] == batch_id]
        return pd.DataFrame(rows, columns=CARD_COLUMNS)

    def list_batches(self, owner: str):
        return self._summarize(pd.DataFrame(
            [r for r in self.rows if r["user_id"] == owner],
            columns=CARD_COLUMNS,
        ))

    def delete_batch(self, owner: str, batch_id: str) -> int:
        before = len(self.rows)
        self.rows = [r for r in self.rows if not (r["user_id"] == owner and r["batch_id"] == batch_id)]
        return before - len(self.rows)

    def identities(self) -> Set[Tuple[str, str, str]]:
        return {(r["category"], r["batch_id"], r["front"].strip().lower()) for r in self.rows}


class RecordingCheckpoint(MemoryCheckpointStore):
    """Memory store that records every saved cursor and can fail on demand."""

    def __init__(self, fail_on_save: Optional[int] = None):
        super().__init__()
        self.saved_cursors: List[int] = []
        self.save_calls = 0
        self.fail_on_save = fail_on_save
        self.cleared = 0

    async def save(self, queue) -> None:
        self.save_calls += 1
        if self.fail_on_save == self.save_calls:
            raise CheckpointError("disk full")
        self.saved_cursors.append(queue.processed_count)
        await super().save(queue)

    async def clear(self) -> None:
        self.cleared += 1
        await super().clear()


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def service():
    return FakeEnrichmentService()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def checkpoint():
    return RecordingCheckpoint()


@pytest.fixture
def make_importer(service, sink, checkpoint, sleeper):
    """Factory building a SmartImporter around the shared fakes."""

    def _make(entries=None, events=None, **kwargs):
        client = EnrichmentClient(service, sleep=sleeper, api_delay=0.6, backoff=3.0, timeout=5)
        callback = events.append if events is not None else (lambda payload: None)
        return SmartImporter(
            owner_id=kwargs.pop("owner_id", OWNER),
            parser=kwargs.pop("parser", FakeParser(entries or [])),
            enrichment=client,
            checkpoint=kwargs.pop("checkpoint", checkpoint),
            sink=kwargs.pop("sink", sink),
            progress_callback=callback,
            **kwargs,
        )

    return _make

