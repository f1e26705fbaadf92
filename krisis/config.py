"""Configuration management."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel

PROJECT_ROOT = Path(__file__).parent.parent


class Config(BaseModel):
    """Application configuration.

    ``owner_id`` scopes every stored application, so several people can
    share one database. ``lock_file`` is held by the CLI while it writes to
    the store or the export directory.
    """

    owner_id: str = "local"
    db_path: Path = PROJECT_ROOT / "data" / "applications.sqlite"
    export_dir: Path = PROJECT_ROOT / "exports"
    export_prefix: str = "krisis-applications"
    lock_file: Path = Path("/tmp/krisis.lock")
    log_level: str = "INFO"


_config: Optional[Config] = None


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file.

    Keys missing from the file fall back to the defaults on ``Config``; an
    empty file is accepted.
    """
    global _config

    if _config is not None:
        return _config

    if config_path is None:
        config_path = PROJECT_ROOT / "config" / "config.yaml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. "
            "Copy config/config.yaml.example to config/config.yaml and fill in your settings."
        )

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    _config = Config(**data)
    return _config


def get_config() -> Config:
    """Get the loaded configuration."""
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None
