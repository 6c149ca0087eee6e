"""Utils module."""

from .helpers import (
    TODAY_BATCH,
    make_batch_id,
    ensure_dir,
)
from .parsing import TextParser
from .retry import with_retry, is_transient_error
from .logger import setup_logger

__all__ = [
    'TODAY_BATCH',
    'make_batch_id',
    'ensure_dir',
    'TextParser',
    'with_retry',
    'is_transient_error',
    'setup_logger'
]
