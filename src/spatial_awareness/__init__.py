"""
Spatial awareness - threat detection and alerting for a walking HUD.

Turns scene-reconstruction anchor updates into tracked objects with threat
ratings, and those into a single debounced, auto-expiring user alert.
"""

from .main import Pipeline, run_pipeline
from .config import AwarenessConfig, ConfigManager
from .models import (
    ActiveAlert,
    AlertLevel,
    AnchorEvent,
    AnchorUpdate,
    HudState,
    ObjectCategory,
    ThreatLevel,
    TrackedObject,
)
from .sensor import AwarenessUnavailableError

__all__ = [
    'Pipeline',
    'run_pipeline',
    'AwarenessConfig',
    'ConfigManager',
    'ActiveAlert',
    'AlertLevel',
    'AnchorEvent',
    'AnchorUpdate',
    'HudState',
    'ObjectCategory',
    'ThreatLevel',
    'TrackedObject',
    'AwarenessUnavailableError',
]
