"""
Repository Pattern - card persistence sinks.

Enables switching between the local SQLite store and the hosted Supabase
backend without changing the import pipeline.
"""

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence, Set

import pandas as pd

from ..config import Config
from ..errors import DuplicateCardError, PersistenceError
from ..models import EnrichedCard
from ..utils.parsing import TextParser

CARD_COLUMNS = [
    "user_id", "front", "back", "ipa", "transcription", "definition",
    "example", "audio", "batch_id", "category", "created_at",
]


class BaseCardRepository(ABC):
    """
    Abstract base class for flashcard repositories.

    Every operation is scoped to an owner id.
    """

    @abstractmethod
    def insert(self, cards: Sequence[EnrichedCard]) -> int:
        """
        Insert cards as one batch.

        Returns:
            Number of rows written

        Raises:
            DuplicateCardError: a unique-key violation rejected the batch
            PersistenceError: any other failure
        """
        pass

    @abstractmethod
    def existing_keys(self, owner: str, language: str, batch_id: str) -> Set[str]:
        """Normalized words already stored for (owner, language, batch)."""
        pass

    @abstractmethod
    def get_batch(self, owner: str, batch_id: str) -> pd.DataFrame:
        """All cards of a batch as a DataFrame with CARD_COLUMNS."""
        pass

    @abstractmethod
    def list_batches(self, owner: str) -> List[Dict[str, Any]]:
        """Batch summaries: batch_id, category, count, last created_at."""
        pass

    @abstractmethod
    def delete_batch(self, owner: str, batch_id: str) -> int:
        """Delete a batch. Returns the number of deleted cards."""
        pass

    @staticmethod
    def _summarize(df: pd.DataFrame) -> List[Dict[str, Any]]:
        """Group card rows into batch summaries, newest first."""
        if df.empty:
            return []
        summary = (
            df.groupby(["batch_id", "category"], as_index=False)
            .agg(count=("created_at", "size"), created_at=("created_at", "max"))
            .sort_values("created_at", ascending=False)
        )
        return [
            {
                "batch_id": row["batch_id"],
                "category": row["category"],
                "count": int(row["count"]),
                "created_at": row["created_at"],
            }
            for row in summary.to_dict(orient="records")
        ]


class SQLiteCardRepository(BaseCardRepository):
    """
    SQLite-based card store (local / guest mode).

    A unique index on (user_id, category, batch_id, word_key) enforces the
    deduplication invariant at the storage level.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize SQLite repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path or Config.DB_FILE)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS flashcards (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    front TEXT NOT NULL,
                    word_key TEXT NOT NULL,
                    back TEXT NOT NULL,
                    ipa TEXT,
                    transcription TEXT,
                    definition TEXT,
                    example TEXT,
                    audio TEXT,
                    batch_id TEXT NOT NULL,
                    category TEXT NOT NULL CHECK (category IN ('en', 'es', 'zh')),
                    is_mistake INTEGER DEFAULT 0 NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE(user_id, category, batch_id, word_key)
                )
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_flashcards_user_id ON flashcards(user_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_flashcards_batch_id ON flashcards(batch_id)")

            cursor.execute("INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                          (self.SCHEMA_VERSION, datetime.now().isoformat()))

            conn.commit()

    def insert(self, cards: Sequence[EnrichedCard]) -> int:
        """Insert cards in one transaction; nothing is written on failure."""
        if not cards:
            return 0

        rows = []
        for card in cards:
            row = card.to_row()
            rows.append([row[c] for c in CARD_COLUMNS] + [card.word_key])

        columns = ", ".join(CARD_COLUMNS + ["word_key"])
        placeholders = ", ".join("?" for _ in range(len(CARD_COLUMNS) + 1))

        with self._get_connection() as conn:
            try:
                conn.executemany(f"INSERT INTO flashcards ({columns}) VALUES ({placeholders})", rows)
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                if "UNIQUE" in str(e).upper():
                    raise DuplicateCardError(f"Duplicate card: {e}") from e
                raise PersistenceError(f"Insert rejected: {e}") from e
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistenceError(f"Insert failed: {e}") from e

        return len(rows)

    def existing_keys(self, owner: str, language: str, batch_id: str) -> Set[str]:
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "SELECT word_key FROM flashcards WHERE user_id = ? AND category = ? AND batch_id = ?",
                    (owner, language, batch_id),
                )
                return {row["word_key"] for row in cursor.fetchall()}
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not read existing cards: {e}") from e

    def get_batch(self, owner: str, batch_id: str) -> pd.DataFrame:
        try:
            with self._get_connection() as conn:
                return pd.read_sql_query(
                    f"SELECT {', '.join(CARD_COLUMNS)} FROM flashcards "
                    "WHERE user_id = ? AND batch_id = ? ORDER BY id",
                    conn,
                    params=(owner, batch_id),
                )
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            raise PersistenceError(f"Could not read batch {batch_id!r}: {e}") from e

    def list_batches(self, owner: str) -> List[Dict[str, Any]]:
        try:
            with self._get_connection() as conn:
                df = pd.read_sql_query(
                    "SELECT batch_id, category, created_at FROM flashcards WHERE user_id = ?",
                    conn,
                    params=(owner,),
                )
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            raise PersistenceError(f"Could not list batches: {e}") from e
        return self._summarize(df)

    def delete_batch(self, owner: str, batch_id: str) -> int:
        with self._get_connection() as conn:
            try:
                cursor = conn.execute(
                    "DELETE FROM flashcards WHERE user_id = ? AND batch_id = ?",
                    (owner, batch_id),
                )
                conn.commit()
                return cursor.rowcount
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistenceError(f"Could not delete batch {batch_id!r}: {e}") from e


class SupabaseCardRepository(BaseCardRepository):
    """
    Hosted card store reached through the Supabase client.

    Row-level security on the ``flashcards`` table isolates users; every query
    is additionally filtered by ``user_id``.
    """

    DUPLICATE_CODE = "23505"  # PostgreSQL unique_violation
    PAGE_SIZE = 1000          # PostgREST default row limit

    def __init__(self, client: Any = None, table: Optional[str] = None):
        """
        Initialize Supabase repository.

        Args:
            client: A supabase ``Client``; created from SUPABASE_URL / SUPABASE_ANON_KEY if None
            table: Table name (defaults to Config.SUPABASE_TABLE)
        """
        if client is None:
            from supabase import create_client

            if not Config.SUPABASE_URL or not Config.SUPABASE_KEY:
                raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set in environment variables")
            client = create_client(Config.SUPABASE_URL, Config.SUPABASE_KEY)

        self.client = client
        self.table = table or Config.SUPABASE_TABLE

    @classmethod
    def _is_duplicate(cls, error: Exception) -> bool:
        code = str(getattr(error, "code", "") or "")
        return code == cls.DUPLICATE_CODE or "duplicate key" in str(error).lower()

    def _select_all(self, columns: str, **filters: str) -> List[Dict[str, Any]]:
        """Page through a filtered select."""
        rows: List[Dict[str, Any]] = []
        start = 0
        while True:
            query = self.client.table(self.table).select(columns)
            for column, value in filters.items():
                query = query.eq(column, value)
            try:
                result = query.range(start, start + self.PAGE_SIZE - 1).execute()
            except Exception as e:
                raise PersistenceError(f"Supabase select failed: {e}") from e

            page = result.data or []
            rows.extend(page)
            if len(page) < self.PAGE_SIZE:
                return rows
            start += self.PAGE_SIZE

    def insert(self, cards: Sequence[EnrichedCard]) -> int:
        if not cards:
            return 0

        rows = [card.to_row() for card in cards]
        try:
            self.client.table(self.table).insert(rows).execute()
        except Exception as e:
            if self._is_duplicate(e):
                raise DuplicateCardError(f"Duplicate card: {e}") from e
            raise PersistenceError(f"Supabase insert failed: {e}") from e
        return len(rows)

    def existing_keys(self, owner: str, language: str, batch_id: str) -> Set[str]:
        rows = self._select_all("front", user_id=owner, category=language, batch_id=batch_id)
        return {TextParser.normalize_key(row.get("front") or "") for row in rows}

    def get_batch(self, owner: str, batch_id: str) -> pd.DataFrame:
        rows = self._select_all(", ".join(CARD_COLUMNS), user_id=owner, batch_id=batch_id)
        return pd.DataFrame(rows, columns=CARD_COLUMNS)

    def list_batches(self, owner: str) -> List[Dict[str, Any]]:
        rows = self._select_all("batch_id, category, created_at", user_id=owner)
        return self._summarize(pd.DataFrame(rows, columns=["batch_id", "category", "created_at"]))

    def delete_batch(self, owner: str, batch_id: str) -> int:
        try:
            result = (
                self.client.table(self.table)
                .delete()
                .eq("user_id", owner)
                .eq("batch_id", batch_id)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Supabase delete failed: {e}") from e
        return len(result.data or [])


def create_repository(backend: Optional[str] = None) -> BaseCardRepository:
    """Create the repository selected by STORAGE_BACKEND ("sqlite" or "supabase")."""
    backend = (backend or Config.STORAGE_BACKEND).lower()
    if backend == "supabase":
        return SupabaseCardRepository()
    return SQLiteCardRepository()
