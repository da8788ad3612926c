"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (MANINDEX__SECTION__KEY)
3. Local YAML (./manindex.yaml, or an explicit --config path)
4. Global YAML (~/.config/manindex/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    MANINDEX__<SECTION>__<KEY>=<VALUE>

Examples:
    MANINDEX__LOGGING__LEVEL=DEBUG
    MANINDEX__MANUAL__DOC_ROOT=/usr/lib/swi-prolog/doc
    MANINDEX__INDEXER__MAX_WORKERS=4
"""

from pathlib import Path
from typing import Literal, NamedTuple

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ClassName = Literal["manual", "packages", "misc"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        MANINDEX__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every indexed file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ManualRoot(NamedTuple):
    """A directory of manual pages, its class label and logical namespace."""

    doc_class: ClassName
    path: Path
    namespace: str


class ManualConfig(BaseModel):
    """Where the HTML manuals and the snapshot live.

    Env vars:
        MANINDEX__MANUAL__DOC_ROOT: Documentation root directory
        MANINDEX__MANUAL__MANUAL_DIR: Reference manual directory (relative to doc_root)
        MANINDEX__MANUAL__PACKAGES_DIR: Package documentation directory
        MANINDEX__MANUAL__SNAPSHOT: Persisted index file
    """

    doc_root: str = Field(
        default="doc",
        description="Documentation root. Relative paths resolve against the working directory.",
    )
    manual_dir: str = Field(
        default="Manual",
        description="Reference manual pages, indexed with class 'manual'.",
    )
    packages_dir: str = Field(
        default="packages",
        description="Package documentation pages, indexed with class 'packages'.",
    )
    snapshot: str = Field(
        default="manindex.db",
        description="Persisted index. Trusted as-is until removed or rebuilt with --force.",
    )

    @field_validator("doc_root")
    @classmethod
    def validate_doc_root(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("doc_root must not be empty")
        return v

    def root_path(self) -> Path:
        return Path(self.doc_root).expanduser().resolve()

    def _under_root(self, value: str) -> Path:
        path = Path(value).expanduser()
        if path.is_absolute():
            return path.resolve()
        return (self.root_path() / path).resolve()

    def roots(self) -> list[ManualRoot]:
        """Manual directories in indexing order: manual, then packages."""
        return [
            ManualRoot("manual", self._under_root(self.manual_dir), "Manual"),
            ManualRoot("packages", self._under_root(self.packages_dir), "packages"),
        ]

    def snapshot_path(self) -> Path:
        return self._under_root(self.snapshot)


class IndexerConfig(BaseModel):
    """Indexing pass configuration.

    Env vars:
        MANINDEX__INDEXER__FILE_PATTERN: Glob for manual pages inside a directory
        MANINDEX__INDEXER__ENCODING: Source file encoding
        MANINDEX__INDEXER__MAX_WORKERS: Parallel file passes
    """

    file_pattern: str = Field(
        default="*.html",
        description="Glob matched against each manual directory (non-recursive).",
    )
    encoding: str = Field(
        default="utf-8",
        description="Source encoding. Undecodable bytes are replaced, keeping offsets stable.",
    )
    max_workers: int = Field(
        default=1,
        description="Parallel file passes. Each pass inserts its records as one batch.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class ManIndexConfig(BaseModel):
    """Root configuration for manindex."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    manual: ManualConfig = Field(default_factory=ManualConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
