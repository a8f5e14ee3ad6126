"""Configuration loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigError


@dataclass
class Config:
    """Application configuration."""

    store_path: Path = field(default_factory=lambda: Path.cwd() / "somanynotes.json")
    export_dir: Path = field(default_factory=Path.cwd)
    verbose: bool = False

    def validate(self) -> None:
        """Validate required configuration."""
        if self.store_path.exists() and not self.store_path.is_file():
            raise ConfigError(f"Store path is not a file: {self.store_path}")
        if self.export_dir.exists() and not self.export_dir.is_dir():
            raise ConfigError(f"Export directory is not a directory: {self.export_dir}")


def load_config(
    store_path: Optional[str] = None,
    export_dir: Optional[str] = None,
    verbose: bool = False,
) -> Config:
    """Load config from .env and apply CLI overrides."""
    load_dotenv()

    config = Config(
        store_path=Path(store_path) if store_path else Path(
            os.getenv("SOMANYNOTES_STORE_PATH", str(Path.cwd() / "somanynotes.json"))
        ),
        export_dir=Path(export_dir) if export_dir else Path(
            os.getenv("SOMANYNOTES_EXPORT_DIR", str(Path.cwd()))
        ),
        verbose=verbose,
    )

    config.validate()
    return config
