"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import RemoteConfig, SyncConfig

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "RemoteConfig",
    "SyncConfig",
]
