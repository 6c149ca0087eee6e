"""
Card Service - operations on stored card batches.

Sits between callers (CLI, UI) and a card repository.
"""

from typing import Any, Dict, List

import pandas as pd

from ..errors import DuplicateCardError
from ..models import EnrichedCard
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser
from .repository import BaseCardRepository

logger = setup_logger(__name__)


class CardService:
    """
    High-level card collection operations.

    Usage:
        service = CardService(SQLiteCardRepository())
        batches = service.list_batches(owner)
        df = service.get_batch(owner, "Unit 1 (2024-05-01)")
    """

    def __init__(self, repository: BaseCardRepository):
        self.repository = repository

    def list_batches(self, owner: str) -> List[Dict[str, Any]]:
        return self.repository.list_batches(owner)

    def get_batch(self, owner: str, batch_id: str) -> pd.DataFrame:
        return self.repository.get_batch(owner, batch_id)

    def delete_batch(self, owner: str, batch_id: str) -> int:
        deleted = self.repository.delete_batch(owner, batch_id)
        logger.info(f"Deleted {deleted} cards from batch '{batch_id}'")
        return deleted

    def migrate(self, owner: str, target: BaseCardRepository) -> Dict[str, int]:
        """
        Copy every card of ``owner`` into ``target``, batch by batch.

        Cards the target already holds are skipped, so a migration can be
        repeated safely.

        Returns:
            {"copied": n, "skipped": m}
        """
        copied = 0
        skipped = 0

        for summary in self.repository.list_batches(owner):
            batch_id = summary["batch_id"]
            language = summary["category"]
            df = self.repository.get_batch(owner, batch_id)
            if df.empty:
                continue

            known = set(target.existing_keys(owner, language, batch_id))
            cards: List[EnrichedCard] = []
            for row in df.fillna("").to_dict(orient="records"):
                if row.get("category") != language:
                    continue
                key = TextParser.normalize_key(str(row.get("front") or ""))
                if not key or key in known:
                    skipped += 1
                    continue
                known.add(key)
                cards.append(EnrichedCard.from_row(row))

            if not cards:
                continue
            try:
                copied += target.insert(cards)
            except DuplicateCardError:
                for card in cards:
                    try:
                        copied += target.insert([card])
                    except DuplicateCardError:
                        skipped += 1

            logger.info(f"Migrated batch '{batch_id}' ({language})")

        return {"copied": copied, "skipped": skipped}
