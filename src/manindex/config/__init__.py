"""Config module exports."""

from manindex.config.loader import ManIndexSettings, load_config
from manindex.config.models import (
    IndexerConfig,
    LoggingConfig,
    ManIndexConfig,
    ManualConfig,
    ManualRoot,
)

__all__ = [
    "load_config",
    "IndexerConfig",
    "LoggingConfig",
    "ManIndexConfig",
    "ManIndexSettings",
    "ManualConfig",
    "ManualRoot",
]
