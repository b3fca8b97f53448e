# maktab/client/environment.py
import os
from enum import Enum
from typing import Mapping, Optional

from pydantic import BaseModel, Field


class Platform(str, Enum):
    WEB = "web"
    ANDROID = "android"
    NATIVE = "native"


class EnvironmentProbe(BaseModel):
    """
    What the client knows about where it runs.

    The resolver only ever reads this object, so tests can hand it any
    combination of signals without a real runtime.
    """
    platform: Platform = Platform.NATIVE
    web_origin: Optional[str] = Field(None, description="Browser origin, only meaningful on the web.")
    dev_host_uri: Optional[str] = Field(None, description="Bundler connection metadata, e.g. '192.168.1.20:8081'.")
    is_device: bool = Field(False, description="True on a physical device, False on an emulator or simulator.")

    @classmethod
    def web(cls, origin: Optional[str] = None, dev_host_uri: Optional[str] = None) -> "EnvironmentProbe":
        return cls(platform=Platform.WEB, web_origin=origin, dev_host_uri=dev_host_uri)

    @classmethod
    def android(cls, dev_host_uri: Optional[str] = None, is_device: bool = False) -> "EnvironmentProbe":
        return cls(platform=Platform.ANDROID, dev_host_uri=dev_host_uri, is_device=is_device)

    @classmethod
    def native(cls, dev_host_uri: Optional[str] = None, is_device: bool = False) -> "EnvironmentProbe":
        return cls(platform=Platform.NATIVE, dev_host_uri=dev_host_uri, is_device=is_device)

    @property
    def origin(self) -> Optional[str]:
        if self.platform is not Platform.WEB:
            return None
        return self.web_origin or None

    @property
    def dev_host(self) -> Optional[str]:
        """Host part of the bundler address, used to reach the developer's machine."""
        if not self.dev_host_uri:
            return None
        return self.dev_host_uri.split(":")[0] or None


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def probe_from_env(environ: Optional[Mapping[str, str]] = None) -> EnvironmentProbe:
    """Builds a probe from MAKTAB_* environment variables."""
    environ = os.environ if environ is None else environ
    raw_platform = (environ.get("MAKTAB_PLATFORM") or "").strip().lower()
    platform = Platform(raw_platform) if raw_platform in (Platform.WEB.value, Platform.ANDROID.value) else Platform.NATIVE
    return EnvironmentProbe(
        platform=platform,
        web_origin=environ.get("MAKTAB_WEB_ORIGIN") or None,
        dev_host_uri=environ.get("MAKTAB_DEV_HOST_URI") or None,
        is_device=_truthy(environ.get("MAKTAB_IS_DEVICE")),
    )


def configured_url_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    environ = os.environ if environ is None else environ
    return environ.get("MAKTAB_API_URL") or None
