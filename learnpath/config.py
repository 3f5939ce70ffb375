"""
Configuration management for LearnPath.

This module centralizes all configuration settings:
- Overrides loaded from environment variables (and a local .env file)
- Sensible defaults for development
- Single source of truth for schema, catalog and data paths
- Logging setup driven by LoggingConfig
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean environment variable ("1", "true", "yes", "on")."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    # Base paths
    package_root: Path = field(default_factory=lambda: Path(__file__).parent)
    project_root: Path = field(default_factory=lambda: Path(__file__).parent.parent)
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("LEARNPATH_DATA_DIR", str(Path(__file__).parent.parent / "data"))
        ).resolve()
    )

    # Data subdirectories (computed from data_dir)
    progress_dir: Path = field(init=False)
    logs_dir: Path = field(init=False)

    # Schemas and bundled content (shipped inside the package)
    schemas_dir: Path = field(init=False)
    catalog_schema: Path = field(init=False)
    progress_schema: Path = field(init=False)
    default_catalog: Path = field(init=False)

    def __post_init__(self):
        """Initialize computed paths."""
        self.progress_dir = self.data_dir / "progress"
        self.logs_dir = self.data_dir / "logs"
        self.schemas_dir = self.package_root / "schemas"
        self.catalog_schema = self.schemas_dir / "catalog.schema.json"
        self.progress_schema = self.schemas_dir / "progress.schema.json"
        self.default_catalog = self.package_root / "data" / "swiftui_bootcamp.json"

    def prepare_filesystem(self):
        """
        Create data directories if they don't exist.

        Separated from __post_init__ to avoid side-effects on import.
        Call this explicitly from your app entrypoint.
        """
        for directory in [self.data_dir, self.progress_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class CatalogConfig:
    """Catalog loading configuration."""

    # Optional override of the bundled catalog document
    catalog_path: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["LEARNPATH_CATALOG"]) if os.getenv("LEARNPATH_CATALOG") else None
        )
    )


@dataclass
class ProgressConfig:
    """Progress tracking and persistence configuration."""

    autosave: bool = field(default_factory=lambda: _env_flag("LEARNPATH_AUTOSAVE", True))
    json_indent: int = 2


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = field(default_factory=lambda: os.getenv("LEARNPATH_LOG_LEVEL", "INFO"))
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Config:
    """
    Main configuration class. Singleton pattern.

    Usage:
        from learnpath.config import config

        # Access settings
        schema = config.paths.catalog_schema
        autosave = config.progress.autosave

        # Prepare filesystem (call once at startup)
        config.prepare_fs()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.paths = PathConfig()
            cls._instance.catalog = CatalogConfig()
            cls._instance.progress = ProgressConfig()
            cls._instance.logging = LoggingConfig()

        return cls._instance

    def prepare_fs(self):
        """Prepare filesystem (create directories). Call once at startup."""
        self.paths.prepare_filesystem()

    def catalog_source(self) -> Path:
        """Catalog document to load when the caller does not name one."""
        return self.catalog.catalog_path or self.paths.default_catalog

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        # Path validation
        if not self.paths.catalog_schema.exists():
            errors.append(f"Catalog schema not found: {self.paths.catalog_schema}")

        if not self.paths.progress_schema.exists():
            errors.append(f"Progress schema not found: {self.paths.progress_schema}")

        if not self.catalog_source().exists():
            errors.append(f"Catalog document not found: {self.catalog_source()}")

        # Progress validation
        if self.progress.json_indent < 0:
            errors.append(f"json_indent must be >= 0, got {self.progress.json_indent}")

        # Logging validation
        if not isinstance(logging.getLevelName(self.logging.log_level.upper()), int):
            errors.append(f"Unknown log_level: {self.logging.log_level}")

        return errors


# Global config instance
config = Config()


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the ``learnpath`` logger hierarchy from LoggingConfig.

    Args:
        level: Override for config.logging.log_level
    """
    logger = logging.getLogger("learnpath")
    logger.setLevel((level or config.logging.log_level).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config.logging.log_format))
        logger.addHandler(handler)
