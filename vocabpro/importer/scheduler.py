"""
Chapter scheduler for resumable smart imports.

An import walks its entry list in fixed-size chapters. Each word is enriched
sequentially, the chapter is written to the sink in one insert, and only then
does the checkpoint cursor move to the end of the chapter. A crash therefore
loses at most the chapter in flight, and the dedup pre-filter makes replaying
it safe.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Set

from ..config import Config
from ..errors import (
    CheckpointError,
    DuplicateCardError,
    ImportInProgressError,
    ParseError,
    PersistenceError,
)
from ..models import EnrichedCard, ImportQueue, RawEntry
from ..services.repository import BaseCardRepository
from ..utils.helpers import make_batch_id
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser
from .checkpoint import CheckpointStore
from .enrichment import EnrichmentClient

logger = setup_logger(__name__)

DEFAULT_PARSE_ERROR = "No valid entries found in file."


@dataclass
class ImportProgress:
    """Latest progress snapshot of a run."""
    percent: int = 0
    status: str = ""
    processed: int = 0
    total: int = 0


@dataclass
class ImportResult:
    """Terminal outcome of start/resume."""
    success: bool
    batch_id: str = ""
    imported: int = 0
    duplicates: int = 0
    junk: int = 0
    skipped: List[str] = field(default_factory=list)
    processed: int = 0
    total: int = 0
    error: Optional[str] = None
    resumable: bool = False


class _RunStats:
    def __init__(self):
        self.imported = 0
        self.duplicates = 0
        self.junk = 0
        self.skipped: List[str] = []


class SmartImporter:
    """
    Run one import at a time against an injected checkpoint slot.

    Usage:
        importer = SmartImporter(owner_id, DictionaryPDFParser(), EnrichmentClient(service),
                                 JSONCheckpointStore(), SQLiteCardRepository())
        result = await importer.start_import(pdf_bytes, "TODAY", "en", file_name="unit1.pdf")
        if not result.success and result.resumable:
            result = await importer.resume_import()
    """

    def __init__(
        self,
        owner_id: str,
        parser: Any,
        enrichment: EnrichmentClient,
        checkpoint: CheckpointStore,
        sink: BaseCardRepository,
        progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None,
        chapter_size: int = Config.CHAPTER_SIZE,
        api_delay: Optional[float] = None,
        max_entries: int = Config.MAX_ENTRIES,
        clock: Callable[[], date] = date.today,
    ):
        """
        Args:
            owner_id: User the cards belong to
            parser: Object with ``parse(bytes) -> ParseResult``
            enrichment: Per-word enrichment wrapper
            checkpoint: Store holding the single active queue
            sink: Card repository
            progress_callback: Receives {"event", "message", "value", ...} payloads
            chapter_size: Entries per chapter (checkpoint granularity)
            api_delay: Pacing delay for this importer's word calls; the client's own delay when None
            max_entries: Entries beyond this are dropped when a queue is created
            clock: Returns today's date, used for "TODAY" batch ids
        """
        if chapter_size < 1:
            raise ValueError("chapter_size must be at least 1")
        if not owner_id:
            raise ValueError("owner_id must not be empty")

        self.owner_id = owner_id
        self.parser = parser
        self.enrichment = enrichment
        self.checkpoint = checkpoint
        self.sink = sink
        self.progress_callback = progress_callback or self._default_callback
        self.chapter_size = chapter_size
        self.max_entries = max_entries
        self.clock = clock
        self.api_delay = api_delay

        self.progress = ImportProgress()
        self._running = False

    @staticmethod
    def _default_callback(payload: Dict[str, Any]) -> None:
        """Default callback that prints to console (for CLI use)."""
        event = payload.get("event")
        if event in ("log", "complete", "error"):
            print(payload.get("message", ""))
        elif event == "progress":
            message = payload.get("message", "")
            if message:
                print(f"[{payload.get('value', 0):3d}%] {message}")

    def _emit(self, event: str, message: str = "", value: int = 0, **extra: Any) -> None:
        payload: Dict[str, Any] = {
            "event": event,
            "message": message,
            "value": value,
        }
        payload.update(extra)
        self.progress_callback(payload)

    def _report(self, processed: int, total: int, status: str) -> None:
        percent = round(processed / total * 100) if total else 100
        self.progress = ImportProgress(percent=percent, status=status, processed=processed, total=total)
        self._emit("progress", status, percent, percent=percent, status=status,
                   processed=processed, total=total)

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Queue management
    # ------------------------------------------------------------------

    async def has_unfinished_import(self) -> bool:
        """True when the checkpoint slot holds a queue."""
        return await self.checkpoint.exists()

    async def load_queue(self) -> Optional[ImportQueue]:
        return await self.checkpoint.load()

    async def clear_queue(self) -> None:
        """Discard the stored queue. Cards already written stay in the sink."""
        if self._running:
            raise ImportInProgressError("Cannot clear the queue while an import is running")
        await self.checkpoint.clear()
        self._emit("log", "🗑️ Import queue cleared")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def start_import(
        self,
        file_bytes: bytes,
        batch_id: str,
        target_language: str,
        file_name: Optional[str] = None,
    ) -> ImportResult:
        """
        Parse a file and import its entries.

        Raises:
            ImportInProgressError: a run is active or an unfinished queue exists
            ParseError: the file produced no entries
            CheckpointError: the initial queue could not be saved
            ValueError: unsupported language or empty batch id
        """
        await self._acquire(check_queue=True)
        try:
            result = await asyncio.to_thread(self.parser.parse, file_bytes)
            for warning in result.warnings:
                self._emit("log", f"⚠️ {warning}")
            if not result.entries:
                raise ParseError(result.warnings[0] if result.warnings else DEFAULT_PARSE_ERROR)

            resolved = make_batch_id(batch_id, file_name, self.clock())
            return await self._begin(result.entries, resolved, target_language)
        finally:
            self._running = False

    async def start_text_import(self, text: str, batch_id: str, target_language: str) -> ImportResult:
        """Import a free-form word list (one word per line, glosses allowed)."""
        await self._acquire(check_queue=True)
        try:
            words = TextParser.extract_word_list(text)
            if not words:
                raise ParseError("No valid words found in text.")

            entries = [RawEntry(front=word) for word in words]
            resolved = make_batch_id(batch_id, None, self.clock())
            return await self._begin(entries, resolved, target_language)
        finally:
            self._running = False

    async def resume_import(self) -> ImportResult:
        """
        Continue the stored queue from its cursor.

        Raises:
            ImportInProgressError: a run is already active
            CheckpointError: the stored queue could not be read
        """
        await self._acquire(check_queue=False)
        try:
            queue = await self.checkpoint.load()
            if queue is None:
                return ImportResult(success=False, error="No unfinished import to resume")

            self._emit("log", f"▶️ Resuming '{queue.batch_id}' at {queue.processed_count}/{queue.total}")
            return await self._run(queue)
        finally:
            self._running = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _acquire(self, check_queue: bool) -> None:
        """Claim the single run slot. The caller releases it in a finally block."""
        if self._running:
            raise ImportInProgressError("An import is already running")
        self._running = True
        if not check_queue:
            return
        try:
            unfinished = await self.checkpoint.exists()
        except BaseException:
            self._running = False
            raise
        if unfinished:
            self._running = False
            raise ImportInProgressError(
                "An unfinished import exists. Resume it or clear the queue first."
            )

    async def _begin(self, entries: List[RawEntry], batch_id: str, language: str) -> ImportResult:
        queue = ImportQueue.create(entries, batch_id, language, max_entries=self.max_entries)
        if len(entries) > queue.total:
            self._emit("log", f"⚠️ {len(entries)} entries found, only the first {queue.total} will be imported")

        await self.checkpoint.save(queue)
        self._emit("log", f"📚 Importing {queue.total} entries into '{batch_id}' ({language})")
        return await self._run(queue)

    async def _run(self, queue: ImportQueue) -> ImportResult:
        stats = _RunStats()
        try:
            return await self._process(queue, stats)
        except (PersistenceError, CheckpointError) as e:
            logger.error(f"Import of '{queue.batch_id}' stopped: {e}")
            self._emit("error", f"❌ Import stopped: {e}. Resume to continue.")
            return self._result(queue, stats, success=False, error=str(e), resumable=True)

    async def _process(self, queue: ImportQueue, stats: _RunStats) -> ImportResult:
        owner = self.owner_id
        language = queue.target_language
        batch_id = queue.batch_id
        total = queue.total

        known: Set[str] = await asyncio.to_thread(self.sink.existing_keys, owner, language, batch_id)
        known = set(known)

        self._report(queue.processed_count, total, "Starting")

        first = (queue.processed_count // self.chapter_size) * self.chapter_size
        for chapter_start in range(first, total, self.chapter_size):
            chapter_end = min(chapter_start + self.chapter_size, total)
            chapter_no = chapter_start // self.chapter_size + 1
            cards: List[EnrichedCard] = []

            for index in range(max(chapter_start, queue.processed_count), chapter_end):
                entry = queue.entries[index]
                front = entry.front.strip()
                key = TextParser.normalize_key(front)

                if len(front) <= 1:
                    stats.junk += 1
                elif key in known:
                    stats.duplicates += 1
                else:
                    card = await self.enrichment.enrich(
                        entry, language, owner, batch_id, api_delay=self.api_delay
                    )
                    if card is None:
                        stats.skipped.append(front)
                        self._emit("log", f"⏭️ Skipped '{front}': {self.enrichment.last_error}")
                    else:
                        cards.append(card)
                        known.add(card.word_key)

                self._report(index + 1, total, f"Chapter {chapter_no}: {front}")

            if cards:
                stats.imported += await self._persist(cards, stats)

            queue.advance(chapter_end)
            await self.checkpoint.save(queue)
            self._report(chapter_end, total, f"Chapter {chapter_no} saved")

        try:
            await self.checkpoint.clear()
        except CheckpointError as e:
            logger.warning(f"Import finished but the queue could not be cleared: {e}")

        summary = f"✅ Imported {stats.imported} cards into '{batch_id}'"
        if stats.skipped:
            summary += f", {len(stats.skipped)} skipped"
        if stats.duplicates:
            summary += f", {stats.duplicates} already present"
        self._emit("complete", summary, 100, imported=stats.imported)
        return self._result(queue, stats, success=True)

    async def _persist(self, cards: List[EnrichedCard], stats: _RunStats) -> int:
        """
        Insert a chapter. A duplicate rejection falls back to row-by-row
        inserts that drop the offending rows; other failures propagate.
        """
        try:
            return await asyncio.to_thread(self.sink.insert, cards)
        except DuplicateCardError as e:
            self._emit("log", f"⚠️ Chapter contains cards already stored ({e}); inserting individually")

        inserted = 0
        for card in cards:
            try:
                inserted += await asyncio.to_thread(self.sink.insert, [card])
            except DuplicateCardError:
                stats.duplicates += 1
        return inserted

    @staticmethod
    def _result(
        queue: ImportQueue,
        stats: _RunStats,
        success: bool,
        error: Optional[str] = None,
        resumable: bool = False,
    ) -> ImportResult:
        return ImportResult(
            success=success,
            batch_id=queue.batch_id,
            imported=stats.imported,
            duplicates=stats.duplicates,
            junk=stats.junk,
            skipped=list(stats.skipped),
            processed=queue.processed_count,
            total=queue.total,
            error=error,
            resumable=resumable,
        )
