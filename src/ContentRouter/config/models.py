# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.config.models",
#   "purpose": "Pydantic v2 configuration models for the content router",
#   "sections": [
#     {"id": "httpsettings", "name": "HttpSettings", "anchor": "class-httpsettings", "kind": "class"},
#     {"id": "timingsettings", "name": "TimingSettings", "anchor": "class-timingsettings", "kind": "class"},
#     {"id": "devicesettings", "name": "DeviceSettings", "anchor": "class-devicesettings", "kind": "class"},
#     {"id": "releasegate", "name": "ReleaseGate", "anchor": "class-releasegate", "kind": "class"},
#     {"id": "routerconfig", "name": "RouterConfig", "anchor": "class-routerconfig", "kind": "class"},
#     {"id": "routerenvironment", "name": "RouterEnvironment", "anchor": "class-routerenvironment", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""
Pydantic v2 Configuration Models for ContentRouter

Provides strict, typed configuration for the resolution engine:
- HTTP probe settings (timeout, redirect limit, user agent)
- Fixed UX delays (splash dwell, review prompt)
- Tablet classification markers
- Release gate date
- Top-level RouterConfig as single source of truth

All models use extra="forbid" for strict validation. Environment variables
and CLI overrides follow: file < env < CLI precedence (see ``loader``).
Process-level knobs (store location, logging) come from ``RouterEnvironment``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import ClassVar, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core import ContentMode, ContentModeKind
from ..network.policy import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_USER_AGENT,
    NETWORK_TIMEOUT_SECONDS,
)

__all__ = [
    "HttpSettings",
    "TimingSettings",
    "DeviceSettings",
    "ReleaseGate",
    "RouterConfig",
    "RouterEnvironment",
]


class HttpSettings(BaseModel):
    """HTTP probe configuration."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    timeout_s: float = Field(
        default=NETWORK_TIMEOUT_SECONDS,
        description="Single timeout applied to every probe (whole redirect chain included)",
    )
    max_redirects: int = Field(
        default=DEFAULT_MAX_REDIRECTS, description="Maximum redirect hops per probe"
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")

    @field_validator("timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_s must be > 0")
        return v

    @field_validator("max_redirects")
    @classmethod
    def validate_max_redirects(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_redirects must be >= 1")
        return v


class TimingSettings(BaseModel):
    """Fixed UX delays; not network waits."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    splash_delay_s: float = Field(
        default=1.5, description="Minimum splash dwell before a terminal decision is published"
    )
    review_prompt_delay_s: float = Field(
        default=2.0, description="Delay before the one-time review prompt request"
    )

    @field_validator("splash_delay_s", "review_prompt_delay_s")
    @classmethod
    def validate_delays(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Delay values must be >= 0")
        return v


class DeviceSettings(BaseModel):
    """Tablet classification markers."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    tablet_idioms: List[str] = Field(
        default=["pad", "tablet"], description="Declared idioms classified as tablet-like"
    )
    tablet_marker: str = Field(
        default="iPad", description="Substring that marks a tablet in model or device name"
    )


class ReleaseGate(BaseModel):
    """Calendar date before which only the basic experience is shown."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    year: int
    month: int = Field(default=1, ge=1, le=12)
    day: int = Field(default=1, ge=1, le=31)
    hour: int = Field(default=0, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)

    def to_datetime(self) -> Optional[datetime]:
        """Return the gate as a naive local datetime, or ``None`` if the date is invalid."""

        try:
            return datetime(self.year, self.month, self.day, self.hour, self.minute)
        except ValueError:
            return None


class RouterConfig(BaseModel):
    """
    Single source of truth for router configuration.

    Loaded from file (YAML/JSON), overlaid with environment variables,
    and finally overridden by CLI arguments. Precedence: file < env < CLI.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid", validate_assignment=True)

    mode: Literal["classic", "classic_no_token", "dropbox", "privacy"] = Field(
        default="classic", description="Resolution strategy"
    )
    privacy_identifier: Optional[str] = Field(
        default=None, description="Identifier whose presence in the final URL forces basic"
    )
    source_url: str = Field(default="", description="Configured starting source URL")
    release_date: Optional[ReleaseGate] = Field(
        default=None, description="Basic is forced until this date"
    )
    accent_color: str = Field(default="#FFFFFF", description="Loading UI accent color")
    http: HttpSettings = Field(default_factory=HttpSettings, description="HTTP probe settings")
    timing: TimingSettings = Field(default_factory=TimingSettings, description="UX delays")
    device: DeviceSettings = Field(
        default_factory=DeviceSettings, description="Tablet classification"
    )

    @model_validator(mode="after")
    def validate_privacy_identifier(self) -> "RouterConfig":
        if self.mode == "privacy" and self.privacy_identifier is None:
            raise ValueError("privacy mode requires privacy_identifier")
        return self

    def content_mode(self) -> ContentMode:
        kind = ContentModeKind(self.mode)
        if kind is ContentModeKind.PRIVACY:
            return ContentMode.privacy(self.privacy_identifier or "")
        return ContentMode(kind)

    def config_hash(self) -> str:
        """
        Compute deterministic SHA256 hash of config for reproducibility.

        Returns:
            Hex-encoded SHA256 hash of normalized config JSON.
        """
        normalized = json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(normalized.encode()).hexdigest()


class RouterEnvironment(BaseSettings):
    """Process-level settings read from ``ROUTER_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="ROUTER_", case_sensitive=False, extra="ignore")

    store_path: Path = Field(
        default=Path.home() / ".contentrouter" / "state.json",
        description="JSON document backing the persistent store",
    )
    log_level: str = Field(default="INFO", description="Root log level for the router")
    log_dir: Optional[Path] = Field(default=None, description="Directory for JSON log files")
