"""Configuration module for gobench."""

from .resolver import OutputDirectory, resolve_config, resolve_count
from .settings import (
    BENCH_TIMEOUT,
    COMPARE_COUNT,
    DEFAULT_BENCH,
    LOG_LEVEL_ENV,
    STASH_LABEL,
    ProfileType,
    RunConfig,
    ToolConfig,
)

__all__ = [
    # Settings
    "BENCH_TIMEOUT",
    "COMPARE_COUNT",
    "DEFAULT_BENCH",
    "LOG_LEVEL_ENV",
    "STASH_LABEL",
    "ProfileType",
    "RunConfig",
    "ToolConfig",
    # Resolution
    "OutputDirectory",
    "resolve_config",
    "resolve_count",
]
