"""Checkpoint stores holding the single active import queue."""

import json
import os
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import aiofiles

from ..config import Config
from ..errors import CheckpointError
from ..models import ImportQueue


class CheckpointStore(ABC):
    """
    One slot holding the serialized ImportQueue.

    ``save`` must not return before the write is durable: the scheduler relies
    on it before starting the next chapter.
    """

    @abstractmethod
    async def save(self, queue: ImportQueue) -> None:
        """Overwrite the active queue."""
        pass

    @abstractmethod
    async def load(self) -> Optional[ImportQueue]:
        """Return the active queue, or None if there is none."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove the active queue."""
        pass

    @abstractmethod
    async def exists(self) -> bool:
        """Check whether a queue is stored."""
        pass


class JSONCheckpointStore(CheckpointStore):
    """
    File-backed checkpoint: ``<directory>/<storage_key>.json``.

    Writes are atomic (temp file + rename), so a crash mid-write leaves the
    previous checkpoint intact.
    """

    def __init__(self, directory: Optional[str] = None, storage_key: Optional[str] = None):
        """
        Args:
            directory: Folder for the checkpoint file (defaults to Config.CHECKPOINT_DIR)
            storage_key: Name of the slot (defaults to Config.STORAGE_KEY)
        """
        self.directory = Path(directory or Config.CHECKPOINT_DIR)
        self.storage_key = storage_key or Config.STORAGE_KEY

    @property
    def path(self) -> Path:
        return self.directory / f"{self.storage_key}.json"

    async def save(self, queue: ImportQueue) -> None:
        payload = json.dumps(queue.to_dict(), ensure_ascii=False)
        temp_file = f"{self.path}.{uuid.uuid4().hex[:8]}.tmp"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(temp_file, "w", encoding="utf-8") as f:
                await f.write(payload)
                await f.flush()
            os.replace(temp_file, self.path)
        except OSError as e:
            if os.path.exists(temp_file):
                try:
                    os.remove(temp_file)
                except OSError:
                    pass
            raise CheckpointError(f"Could not save import checkpoint: {e}") from e

    async def load(self) -> Optional[ImportQueue]:
        if not self.path.exists():
            return None
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                content = await f.read()
            data = json.loads(content)
        except OSError as e:
            raise CheckpointError(f"Could not read import checkpoint: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CheckpointError(f"Import checkpoint is corrupt: {e}") from e
        return ImportQueue.from_dict(data)

    async def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise CheckpointError(f"Could not clear import checkpoint: {e}") from e

    async def exists(self) -> bool:
        return self.path.exists()


class MemoryCheckpointStore(CheckpointStore):
    """In-process checkpoint. Still round-trips through JSON like the file store."""

    def __init__(self):
        self._payload: Optional[str] = None

    async def save(self, queue: ImportQueue) -> None:
        self._payload = json.dumps(queue.to_dict(), ensure_ascii=False)

    async def load(self) -> Optional[ImportQueue]:
        if self._payload is None:
            return None
        return ImportQueue.from_dict(json.loads(self._payload))

    async def clear(self) -> None:
        self._payload = None

    async def exists(self) -> bool:
        return self._payload is not None
