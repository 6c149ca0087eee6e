"""Import queue: the checkpointed state of a running import."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..config import Config, is_supported_language
from ..errors import CheckpointError
from .card import RawEntry


@dataclass
class ImportQueue:
    """
    Serialized state of one import.

    ``batch_id``, ``target_language`` and ``entries`` are fixed when the queue
    is created. ``processed_count`` is the resume cursor: entries below it are
    durably stored.
    """

    batch_id: str
    target_language: str
    entries: List[RawEntry]
    processed_count: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def create(
        cls,
        entries: Iterable[RawEntry],
        batch_id: str,
        target_language: str,
        max_entries: int = Config.MAX_ENTRIES,
    ) -> "ImportQueue":
        """Build a fresh queue, keeping at most ``max_entries`` entries."""
        if not batch_id:
            raise ValueError("batch_id must not be empty")
        if not is_supported_language(target_language):
            raise ValueError(f"Unsupported language: {target_language}")

        capped: List[RawEntry] = []
        for entry in entries:
            if len(capped) >= max_entries:
                break
            capped.append(entry)

        return cls(batch_id=batch_id, target_language=target_language, entries=capped)

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def is_complete(self) -> bool:
        return self.processed_count >= len(self.entries)

    def advance(self, processed_count: int) -> None:
        """Move the cursor forward; it never moves back or past the end."""
        if processed_count < self.processed_count:
            raise ValueError(
                f"Cursor cannot move backwards ({self.processed_count} -> {processed_count})"
            )
        self.processed_count = min(processed_count, len(self.entries))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batchId": self.batch_id,
            "targetLanguage": self.target_language,
            "entries": [e.to_dict() for e in self.entries],
            "processedCount": self.processed_count,
            "total": len(self.entries),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Any, max_entries: Optional[int] = None) -> "ImportQueue":
        """
        Rebuild a queue from its JSON form.

        Raises:
            CheckpointError: if the payload is not a valid queue
        """
        if not isinstance(data, dict):
            raise CheckpointError("Checkpoint payload is not an object")

        batch_id = data.get("batchId")
        language = data.get("targetLanguage")
        raw_entries = data.get("entries")
        processed = data.get("processedCount", 0)

        if not isinstance(batch_id, str) or not batch_id:
            raise CheckpointError("Checkpoint has no batch id")
        if not isinstance(language, str) or not is_supported_language(language):
            raise CheckpointError(f"Checkpoint has unsupported language: {language!r}")
        if not isinstance(raw_entries, list):
            raise CheckpointError("Checkpoint entries are missing")
        if not isinstance(processed, int) or isinstance(processed, bool) or processed < 0:
            raise CheckpointError(f"Checkpoint cursor is invalid: {processed!r}")

        limit = max_entries if max_entries is not None else Config.MAX_ENTRIES
        try:
            entries = [RawEntry.from_dict(e) for e in raw_entries[:limit]]
        except AttributeError:
            raise CheckpointError("Checkpoint entries are malformed")

        return cls(
            batch_id=batch_id,
            target_language=language,
            entries=entries,
            processed_count=min(processed, len(entries)),
            timestamp=str(data.get("timestamp") or ""),
        )
