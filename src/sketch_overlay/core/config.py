"""Configuration management for Sketch Overlay."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Optional, Type

import yaml

from .models import (
    FONT_STRETCH_NAMES, FONT_STRETCH_NORMAL, MAX_FONT_WEIGHT, FillRule,
    FontStyle, FontVariant, LineCap, LineJoin
)

logger = logging.getLogger(__name__)

# Default configuration file path
DEFAULT_CONFIG_PATH = Path("config.yaml")

DEFAULT_PALETTE = [
    "#ff0000ff",  # red
    "#ff8000ff",  # orange
    "#ffff00ff",  # yellow
    "#00c000ff",  # green
    "#0080ffff",  # blue
    "#8000ffff",  # purple
    "#000000ff",  # black
    "#ffffffff",  # white
    "#808080ff",  # gray
]
PALETTE_SIZE = len(DEFAULT_PALETTE)


def _coerce_enum(enum_cls: Type[IntEnum], value: Any, default: IntEnum) -> IntEnum:
    """Return the enum member for ``value``, or the default when it is not one."""
    try:
        return enum_cls(int(value))
    except (TypeError, ValueError):
        logger.warning(f"Invalid {enum_cls.__name__} value {value!r}, using {default.name}")
        return default


@dataclass
class AppConfig:
    """
    Application configuration settings.

    Stores the drawing defaults and where drawings are kept.
    """

    data_directory: str = ""  # Empty for ~/.local/share/sketch-overlay
    persistent_file_name: str = "persistent"
    svg_file_prefix: str = "Sketch"
    pictures_directory: str = ""  # Empty for ~/Pictures
    persistent_drawing: bool = True  # Restore the last drawing on start
    palette: list[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    background_color: str = "#2e2e2eff"
    show_background: bool = False
    line_width: float = 3.0
    line_join: LineJoin = LineJoin.ROUND
    line_cap: LineCap = LineCap.ROUND
    fill_rule: FillRule = FillRule.WINDING
    dash_on: float = 5.0
    dash_off: float = 5.0
    dash_offset: float = 0.0
    font_family: str = "Sans"
    font_weight: int = 400
    font_style: FontStyle = FontStyle.NORMAL
    font_stretch: int = FONT_STRETCH_NORMAL
    font_variant: FontVariant = FontVariant.NORMAL
    text_right_aligned: bool = False
    grid_gap: float = 10.0
    grid_line_width: float = 0.4  # every fifth line
    grid_interline_width: float = 0.2
    grid_color: str = "#7f7f7fff"

    def data_path(self) -> Path:
        """Directory holding the JSON drawings."""
        if self.data_directory:
            return Path(self.data_directory).expanduser()
        return Path.home() / ".local" / "share" / "sketch-overlay"

    def pictures_path(self) -> Path:
        """Directory receiving SVG exports."""
        if self.pictures_directory:
            return Path(self.pictures_directory).expanduser()
        return Path.home() / "Pictures"

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "dataDirectory": self.data_directory,
            "persistentFileName": self.persistent_file_name,
            "svgFilePrefix": self.svg_file_prefix,
            "picturesDirectory": self.pictures_directory,
            "persistentDrawing": self.persistent_drawing,
            "palette": list(self.palette),
            "backgroundColor": self.background_color,
            "showBackground": self.show_background,
            "lineWidth": self.line_width,
            "lineJoin": int(self.line_join),
            "lineCap": int(self.line_cap),
            "fillRule": int(self.fill_rule),
            "dashOn": self.dash_on,
            "dashOff": self.dash_off,
            "dashOffset": self.dash_offset,
            "fontFamily": self.font_family,
            "fontWeight": self.font_weight,
            "fontStyle": int(self.font_style),
            "fontStretch": self.font_stretch,
            "fontVariant": int(self.font_variant),
            "textRightAligned": self.text_right_aligned,
            "gridGap": self.grid_gap,
            "gridLineWidth": self.grid_line_width,
            "gridInterlineWidth": self.grid_interline_width,
            "gridColor": self.grid_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create config from dictionary, replacing out-of-range values with defaults."""
        palette = data.get("palette") or []
        if not isinstance(palette, list):
            palette = []
        # Missing entries fall back to the default palette
        palette = [str(c) for c in palette[:PALETTE_SIZE]] + DEFAULT_PALETTE[len(palette):]

        stretch = data.get("fontStretch", FONT_STRETCH_NORMAL)
        if not isinstance(stretch, int) or not 0 <= stretch < len(FONT_STRETCH_NAMES):
            stretch = FONT_STRETCH_NORMAL

        weight = data.get("fontWeight", 400)
        if not isinstance(weight, int) or weight <= 0:
            weight = 400

        grid_gap = float(data.get("gridGap", 10.0))
        if grid_gap < 1:
            grid_gap = 10.0

        return cls(
            data_directory=data.get("dataDirectory", ""),
            persistent_file_name=data.get("persistentFileName", "persistent"),
            svg_file_prefix=data.get("svgFilePrefix", "Sketch"),
            pictures_directory=data.get("picturesDirectory", ""),
            persistent_drawing=data.get("persistentDrawing", True),
            palette=palette,
            background_color=data.get("backgroundColor", "#2e2e2eff"),
            show_background=data.get("showBackground", False),
            line_width=max(0.0, float(data.get("lineWidth", 3.0))),
            line_join=_coerce_enum(LineJoin, data.get("lineJoin", LineJoin.ROUND), LineJoin.ROUND),
            line_cap=_coerce_enum(LineCap, data.get("lineCap", LineCap.ROUND), LineCap.ROUND),
            fill_rule=_coerce_enum(FillRule, data.get("fillRule", FillRule.WINDING), FillRule.WINDING),
            dash_on=float(data.get("dashOn", 5.0)),
            dash_off=float(data.get("dashOff", 5.0)),
            dash_offset=float(data.get("dashOffset", 0.0)),
            font_family=data.get("fontFamily", "Sans"),
            font_weight=min(weight, MAX_FONT_WEIGHT),
            font_style=_coerce_enum(FontStyle, data.get("fontStyle", FontStyle.NORMAL), FontStyle.NORMAL),
            font_stretch=stretch,
            font_variant=_coerce_enum(FontVariant, data.get("fontVariant", FontVariant.NORMAL), FontVariant.NORMAL),
            text_right_aligned=data.get("textRightAligned", False),
            grid_gap=grid_gap,
            grid_line_width=max(0.0, float(data.get("gridLineWidth", 0.4))),
            grid_interline_width=max(0.0, float(data.get("gridInterlineWidth", 0.2))),
            grid_color=data.get("gridColor", "#7f7f7fff"),
        )


class ConfigManager:
    """
    Loads the drawing defaults from a YAML file and writes back the
    style kept at the end of a session.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Optional[AppConfig] = None

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> AppConfig:
        """
        Load configuration from file.

        Returns:
            AppConfig instance with loaded or default values
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return AppConfig()

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                logger.error(f"Config file {self.config_path} is not a mapping")
                return AppConfig()
            logger.info(f"Loaded configuration from {self.config_path}")
            return AppConfig.from_dict(data)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            return AppConfig()
        except Exception as e:
            logger.error(f"Error loading config: {e}")
            return AppConfig()

    def save(self, config: Optional[AppConfig] = None) -> bool:
        """
        Save configuration to file.

        Args:
            config: Configuration to save, or use current config

        Returns:
            True if save was successful
        """
        if config is not None:
            self._config = config

        if self._config is None:
            logger.warning("No configuration to save")
            return False

        try:
            with open(self.config_path, "w") as f:
                yaml.dump(self._config.to_dict(), f, default_flow_style=False)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except Exception as e:
            logger.error(f"Error saving config: {e}")
            return False

    def update(self, **kwargs: Any) -> bool:
        """
        Set AppConfig fields and save the file.

        Args:
            **kwargs: Field names and their new values

        Returns:
            True if the file was written
        """
        config = self.config
        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")
        return self.save()
