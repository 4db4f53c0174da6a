"""
User settings for configconv.

Luu tai ~/.config/configconv/config.json:
  - model_overrides: {"opus": "my-provider/opus-latest", ...}
  - default_model / default_small_model: dung khi nguon khong co model
  - backup / merge_strategy: gia tri mac dinh cho `migrate`
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

from configconv.core.types import MERGE_STRATEGIES
from configconv.utils import logger

CONFIG_DIR = Path.home() / ".config" / "configconv"
CONFIG_FILE = CONFIG_DIR / "config.json"


@dataclass
class Settings:
    model_overrides: Dict[str, str] = field(default_factory=dict)
    default_model: Optional[str] = None
    default_small_model: Optional[str] = None
    backup: bool = True
    merge_strategy: str = "preserve-existing"


def load_settings() -> Settings:
    """Doc config.json. File thieu hoac hong -> Settings mac dinh."""
    if not CONFIG_FILE.exists():
        return Settings()
    try:
        data = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", CONFIG_FILE, e)
        return Settings()
    if not isinstance(data, dict):
        return Settings()

    known = {f.name for f in fields(Settings)}
    settings = Settings(**{k: v for k, v in data.items() if k in known})
    if settings.merge_strategy not in MERGE_STRATEGIES:
        logger.warning("Unknown merge_strategy '%s' in settings, using default", settings.merge_strategy)
        settings.merge_strategy = "preserve-existing"
    if not isinstance(settings.model_overrides, dict):
        settings.model_overrides = {}
    return settings


def save_settings(settings: Settings) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(asdict(settings), indent=2, ensure_ascii=False), encoding="utf-8")
