"""Card data models for VocabPro."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from ..utils.parsing import TextParser


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class RawEntry:
    """One dictionary entry as produced by the source parser."""

    front: str
    ipa: str = ""
    definition: str = ""
    example: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "front": self.front,
            "ipa": self.ipa,
            "definition": self.definition,
            "example": self.example,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawEntry":
        return cls(
            front=str(data.get("front") or ""),
            ipa=str(data.get("ipa") or ""),
            definition=str(data.get("definition") or ""),
            example=str(data.get("example") or ""),
        )


@dataclass
class EnrichmentResult:
    """Per-word output of the enrichment service. Any field may be empty."""

    word: str
    translation: str = ""
    definition: str = ""
    example: str = ""
    ipa: str = ""
    audio: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnrichmentResult":
        return cls(
            word=str(data.get("word") or ""),
            translation=str(data.get("translation") or ""),
            definition=str(data.get("definition") or ""),
            example=str(data.get("example") or ""),
            ipa=str(data.get("ipa") or data.get("fallback_ipa") or ""),
            audio=str(data.get("audio") or ""),
        )


@dataclass
class EnrichedCard:
    """A cleaned flashcard ready for the persistence sink."""

    owner: str
    front: str
    back: str
    batch_id: str
    language: str
    ipa: str = ""
    definition: str = ""
    example: str = ""
    audio: Optional[str] = None
    created_at: str = field(default_factory=_utc_now_iso)

    @property
    def transcription(self) -> str:
        return self.ipa

    @property
    def word_key(self) -> str:
        return TextParser.normalize_key(self.front)

    @property
    def key(self) -> Tuple[str, str, str]:
        """Deduplication identity: (language, batch, normalized word)."""
        return (self.language, self.batch_id, self.word_key)

    def to_row(self) -> Dict[str, Any]:
        """Row shape of the ``flashcards`` table."""
        return {
            "user_id": self.owner,
            "front": self.front,
            "back": self.back,
            "ipa": self.ipa,
            "transcription": self.transcription,
            "definition": self.definition,
            "example": self.example,
            "audio": self.audio or "",
            "batch_id": self.batch_id,
            "category": self.language,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "EnrichedCard":
        return cls(
            owner=str(row.get("user_id") or ""),
            front=str(row.get("front") or ""),
            back=str(row.get("back") or ""),
            batch_id=str(row.get("batch_id") or ""),
            language=str(row.get("category") or ""),
            ipa=str(row.get("ipa") or row.get("transcription") or ""),
            definition=str(row.get("definition") or ""),
            example=str(row.get("example") or ""),
            audio=row.get("audio") or None,
            created_at=str(row.get("created_at") or _utc_now_iso()),
        )
