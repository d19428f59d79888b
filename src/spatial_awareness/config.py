from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from .models import AlertLevel, ThreatLevel

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("config.json")

MAX_SCAN_RADIUS = 50.0


def _default_cooldowns() -> dict[AlertLevel, float]:
    return {
        AlertLevel.INFO: 10.0,
        AlertLevel.CAUTION: 5.0,
        AlertLevel.WARNING: 2.0,
        AlertLevel.CRITICAL: 0.5,
    }


def _default_dismiss_durations() -> dict[AlertLevel, float]:
    return {
        AlertLevel.INFO: 3.0,
        AlertLevel.CAUTION: 4.0,
        AlertLevel.WARNING: 5.0,
        AlertLevel.CRITICAL: 8.0,
    }


@dataclass
class AwarenessConfig:
    # Scanning
    scan_radius: float = 30.0
    update_interval: float = 0.1
    queue_size: int = 256

    # Tracking
    stale_timeout: float = 2.0
    merge_bearing_tolerance: float = 0.2
    merge_distance_tolerance: float = 2.0
    critical_distance: float = 3.0

    # Motion
    estimate_velocity: bool = False
    velocity_smoothing: float = 0.5

    # Alerting
    alert_min_threat: ThreatLevel = ThreatLevel.MEDIUM
    cooldowns: dict[AlertLevel, float] = field(default_factory=_default_cooldowns)
    dismiss_durations: dict[AlertLevel, float] = field(default_factory=_default_dismiss_durations)
    locale: str = "en"

    def __post_init__(self) -> None:
        if self.scan_radius > MAX_SCAN_RADIUS:
            logger.warning(
                "Scan radius %.1f exceeds maximum %.1f; clamping",
                self.scan_radius,
                MAX_SCAN_RADIUS,
            )
            self.scan_radius = MAX_SCAN_RADIUS
        if self.update_interval <= 0:
            raise ValueError("update_interval must be positive")


def config_to_dict(config: AwarenessConfig) -> dict[str, Any]:
    data = asdict(config)
    data["alert_min_threat"] = config.alert_min_threat.name.lower()
    data["cooldowns"] = {level.name.lower(): value for level, value in config.cooldowns.items()}
    data["dismiss_durations"] = {
        level.name.lower(): value for level, value in config.dismiss_durations.items()
    }
    return data


def config_from_dict(data: dict[str, Any]) -> AwarenessConfig:
    known = {f.name for f in fields(AwarenessConfig)}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown config key '%s'", key)
            continue
        kwargs[key] = value

    if "alert_min_threat" in kwargs:
        kwargs["alert_min_threat"] = ThreatLevel[str(kwargs["alert_min_threat"]).upper()]
    for key, defaults in (
        ("cooldowns", _default_cooldowns),
        ("dismiss_durations", _default_dismiss_durations),
    ):
        if key in kwargs:
            # Partial tables only override the levels they name
            table = defaults()
            for name, seconds in kwargs[key].items():
                table[AlertLevel[name.upper()]] = float(seconds)
            kwargs[key] = table
    return AwarenessConfig(**kwargs)


class ConfigManager:
    @staticmethod
    def load(path: Path | None = None) -> AwarenessConfig:
        path = path or CONFIG_FILE
        if not path.exists():
            return AwarenessConfig()

        try:
            with open(path, "r") as f:
                data = json.load(f)
            return config_from_dict(data)
        except Exception as e:
            logger.error(f"Failed to load config from {path}: {e}")
            return AwarenessConfig()

    @staticmethod
    def save(config: AwarenessConfig, path: Path | None = None) -> None:
        path = path or CONFIG_FILE
        try:
            with open(path, "w") as f:
                json.dump(config_to_dict(config), f, indent=4)
            logger.info("Configuration saved to %s", path)
        except Exception as e:
            logger.error(f"Failed to save config: {e}")
