"""Utility functions."""

import re
from datetime import date
from pathlib import Path
from typing import Optional

# Sentinel batch id meaning "name the batch after the file and today's date"
TODAY_BATCH = "TODAY"


def make_batch_id(batch_id: str, file_name: Optional[str] = None, today: Optional[date] = None) -> str:
    """
    Resolve the destination batch id for an import.

    "TODAY" becomes "<clean file name> (YYYY-MM-DD)", where the clean name has
    its extension and trailing digits removed. Any other id is used as given.
    """
    if batch_id != TODAY_BATCH:
        return batch_id

    today = today or date.today()
    stem = re.sub(r'\.[^/.]+$', '', file_name or "").strip()
    stem = re.sub(r'\d+$', '', stem).strip()
    if not stem:
        return today.isoformat()
    return f"{stem} ({today.isoformat()})"


def ensure_dir(path: str) -> None:
    """Ensure directory exists."""
    Path(path).mkdir(parents=True, exist_ok=True)

