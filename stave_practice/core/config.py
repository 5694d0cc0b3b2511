"""Configuration management for Stave Practice components."""

from dataclasses import dataclass, asdict, fields
from typing import Dict, Any, Optional
import json
import os
from pathlib import Path

from ..errors import ConfigError
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass
class PracticeConfig:
    """Timing and geometry constants for a practice session."""

    sampling_period_ms: int = 100  # Pitch sampler period
    scroll_speed: float = 5.0  # Pixels per frame
    note_spacing: float = 200.0  # Pixels between spawned notes
    activation_band_px: float = 20.0  # Half-width of the band around the target line
    confidence_threshold: float = 0.9  # Readings must be strictly above this
    window_size: int = 2048  # Samples per pitch estimation window
    sample_rate: int = 44100  # Hz
    exit_margin_px: float = 20.0  # Notes retire this far past the stave's right edge
    device_id: Optional[int] = None  # Audio input device ID, or None for default
    fps: int = 60  # Render refresh rate

    def validate(self) -> "PracticeConfig":
        """Check value ranges.

        Returns:
            self, to allow chaining

        Raises:
            ConfigError: If a value is out of range
        """
        positive = {
            "sampling_period_ms": self.sampling_period_ms,
            "scroll_speed": self.scroll_speed,
            "note_spacing": self.note_spacing,
            "window_size": self.window_size,
            "sample_rate": self.sample_rate,
            "fps": self.fps,
        }
        for name, value in positive.items():
            if value is None or value <= 0:
                raise ConfigError(f"{name} must be positive, got {value!r}")
        if self.activation_band_px < 0:
            raise ConfigError(
                f"activation_band_px must not be negative, got {self.activation_band_px!r}"
            )
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ConfigError(
                f"confidence_threshold must be within [0, 1], got {self.confidence_threshold!r}"
            )
        return self

    @property
    def sampling_period(self) -> float:
        """Sampling period in seconds."""
        return self.sampling_period_ms / 1000.0

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "PracticeConfig":
        """Build a config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in values.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigManager:
    """Stores the practice settings as JSON in the user's config directory."""

    FILE_NAME = "practice.json"

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory to store the configuration file, or None to use
                ~/.config/stave_practice
        """
        if config_dir is None:
            config_dir = os.path.join(os.path.expanduser("~"), ".config", "stave_practice")

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file = self.config_dir / self.FILE_NAME

        self._defaults = PracticeConfig().to_dict()
        self._values = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            values = dict(self._defaults)
            self.save(values)
            return values

        try:
            with open(self.config_file, "r") as f:
                stored = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading configuration from {self.config_file}: {e}")
            return dict(self._defaults)

        logger.info(f"Loaded configuration from {self.config_file}")
        # Keys added in newer versions fall back to their defaults
        return {**self._defaults, **stored}

    def save(self, values: Dict[str, Any]) -> bool:
        """Write the settings to disk.

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            with open(self.config_file, "w") as f:
                json.dump(values, f, indent=2)
        except OSError as e:
            logger.error(f"Error saving configuration to {self.config_file}: {e}")
            return False
        logger.info(f"Saved configuration to {self.config_file}")
        return True

    def get(self) -> Dict[str, Any]:
        """A copy of the stored settings."""
        return dict(self._values)

    def update(self, updates: Dict[str, Any]) -> bool:
        """Apply updates and save them."""
        self._values.update(updates)
        return self.save(self._values)

    def reset(self) -> bool:
        """Restore the default settings and save them."""
        self._values = dict(self._defaults)
        return self.save(self._values)

    def practice_config(self, **overrides) -> PracticeConfig:
        """Build a validated PracticeConfig from the stored values.

        Args:
            **overrides: Values that take precedence over the stored ones (None is ignored)

        Raises:
            ConfigError: If the resulting values are out of range
        """
        values = self.get()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return PracticeConfig.from_dict(values).validate()
