"""Configuration models and the file/env/CLI loader for the content router."""

from .loader import ENV_PREFIX, export_config_schema, load_config
from .models import (
    DeviceSettings,
    HttpSettings,
    ReleaseGate,
    RouterConfig,
    RouterEnvironment,
    TimingSettings,
)

__all__ = [
    "ENV_PREFIX",
    "load_config",
    "export_config_schema",
    "DeviceSettings",
    "HttpSettings",
    "ReleaseGate",
    "RouterConfig",
    "RouterEnvironment",
    "TimingSettings",
]
