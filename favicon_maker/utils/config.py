import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from favicon_maker.utils.helpers import RESAMPLE_NAMES
from favicon_maker.utils.logger import get_logger

logger = get_logger("config")

DEFAULT_PATH = Path.home() / ".favicon_maker_config.json"


@dataclass(frozen=True)
class OutputNames:
    light_2x: str = "light@2x.png"
    dark_2x: str = "dark@2x.png"
    light_1x: str = "light@1x.png"
    dark_1x: str = "dark@1x.png"
    light: str = "light.png"
    dark: str = "dark.png"

    def all(self) -> list[str]:
        # Creation order of the destination files
        return [self.light_2x, self.dark_2x, self.light_1x, self.dark_1x, self.light, self.dark]


@dataclass(frozen=True)
class ExportSettings:
    canvas_width: int = 46
    canvas_height: int = 46
    resolution: int = 72
    mode: str = "RGB"
    fill: str = "white"
    small_size: int = 23
    resample: str = "bicubic"
    names: OutputNames = field(default_factory=OutputNames)


class AppConfig:
    """
    Read-only user overrides for ExportSettings. The file is never written back,
    so every run starts from the same state.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or DEFAULT_PATH
        self.settings = ExportSettings()
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable config %s: %s", self.path, e)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: expected a JSON object", self.path)
            return

        known = {f.name for f in fields(ExportSettings)} - {"names"}
        overrides = {}
        for key, value in data.items():
            if key not in known:
                logger.debug("Unknown config key %r ignored", key)
                continue
            overrides[key] = value

        if "resample" in overrides and str(overrides["resample"]).lower() not in RESAMPLE_NAMES:
            logger.warning("Unknown resample %r, keeping %s", overrides["resample"], self.settings.resample)
            del overrides["resample"]
        for key in ("canvas_width", "canvas_height", "resolution", "small_size"):
            if key in overrides:
                try:
                    overrides[key] = int(overrides[key])
                except (TypeError, ValueError):
                    logger.warning("Config key %s must be an integer, got %r", key, overrides[key])
                    del overrides[key]
        self.settings = replace(self.settings, **overrides)
