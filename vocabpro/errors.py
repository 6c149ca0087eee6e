"""Exception hierarchy for the import pipeline and its collaborators."""

from typing import Optional


class VocabImportError(Exception):
    """Base class for import pipeline errors."""


class ParseError(VocabImportError):
    """The source file could not be turned into entries."""


class CheckpointError(VocabImportError):
    """The checkpoint store could not save, load or clear the queue."""


class PersistenceError(VocabImportError):
    """The persistence sink rejected an insert or query."""


class DuplicateCardError(PersistenceError):
    """The persistence sink reported a unique-key violation."""


class ImportInProgressError(VocabImportError):
    """Another import owns the single checkpoint slot."""


class APIError(Exception):
    """
    An external enrichment call failed.

    ``status`` carries the HTTP status when the failure came from a response,
    and is None for transport or decoding failures.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
