# maktab/client/resolver.py
from typing import Iterable, List, Optional

from .environment import EnvironmentProbe, Platform

PRIMARY_PORT = 8083
LEGACY_PORT = 5001
ANDROID_EMULATOR_HOST = "10.0.2.2"
DEFAULT_BASE_URL = f"http://localhost:{PRIMARY_PORT}"


def normalize_url(url: str) -> str:
    return url.rstrip("/")


def _on_both_ports(host: Optional[str]) -> List[Optional[str]]:
    if not host:
        return [None, None]
    return [f"http://{host}:{PRIMARY_PORT}", f"http://{host}:{LEGACY_PORT}"]


def _unique(values: Iterable[Optional[str]]) -> List[str]:
    """Drops empty entries and duplicates, keeping first-seen order."""
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def resolve_candidates(probe: EnvironmentProbe, configured_url: Optional[str] = None) -> List[str]:
    """
    Ordered base URLs to try for a request.

    A configured URL is the only candidate when set. Otherwise:
      web     -> own origin, localhost, 127.0.0.1, dev host
      android -> dev host, emulator alias, localhost
      other   -> dev host, localhost
    each host on the primary and the legacy port.
    """
    configured_url = normalize_url(configured_url or "")
    if configured_url:
        return [configured_url]

    dev_host = _on_both_ports(probe.dev_host)
    localhost = _on_both_ports("localhost")

    if probe.platform is Platform.WEB:
        return _unique([probe.origin, *localhost, *_on_both_ports("127.0.0.1"), *dev_host])

    if probe.platform is Platform.ANDROID:
        return _unique([*dev_host, *_on_both_ports(ANDROID_EMULATOR_HOST), *localhost])

    return _unique([*dev_host, *localhost])


def primary_base_url(probe: EnvironmentProbe, configured_url: Optional[str] = None) -> str:
    """Single best-guess base URL, for display and for callers that do not fail over."""
    configured_url = normalize_url(configured_url or "")
    if configured_url:
        return configured_url
    if probe.origin:
        return probe.origin

    dev_host = probe.dev_host
    if probe.platform is Platform.ANDROID:
        if probe.is_device and dev_host:
            return f"http://{dev_host}:{PRIMARY_PORT}"
        return f"http://{ANDROID_EMULATOR_HOST}:{PRIMARY_PORT}"

    if dev_host:
        return f"http://{dev_host}:{PRIMARY_PORT}"
    return DEFAULT_BASE_URL
