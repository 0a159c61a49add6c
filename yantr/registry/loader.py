"""Load the component registry once per invocation.

The registry may live on disk (the bundled ``registry.json`` or a
``YANTR_REGISTRY`` path) or behind an http(s) URL.  Any failure to read or
validate it is fatal for the run and surfaces as :class:`RegistryError`.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
from pydantic import ValidationError

from .models import Registry


class RegistryError(Exception):
    """Raised when the registry cannot be read or does not match the schema."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"Could not load registry from {source}: {message}")


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def _fetch_remote(source: str, timeout: int) -> str:
    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=10.0)) as client:
            response = await client.get(source)
            response.raise_for_status()
            return response.text
    except httpx.TimeoutException:
        raise RegistryError(source, f"request timed out after {timeout}s") from None
    except httpx.HTTPStatusError as exc:
        raise RegistryError(source, f"HTTP {exc.response.status_code}") from None
    except httpx.HTTPError as exc:
        raise RegistryError(source, str(exc) or exc.__class__.__name__) from None


def _read_local(source: str) -> str:
    path = Path(source)
    if not path.is_file():
        raise RegistryError(source, "file not found")
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RegistryError(source, str(exc)) from None
    except UnicodeDecodeError as exc:
        raise RegistryError(source, f"not valid UTF-8 ({exc.reason})") from None


def parse_registry(raw: str, source: str = "<string>") -> Registry:
    """Parse and validate a registry document.

    Raises:
        RegistryError: If *raw* is not JSON or does not match the registry schema.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RegistryError(source, f"invalid JSON ({exc.msg} at line {exc.lineno})") from None
    try:
        return Registry.model_validate(data)
    except ValidationError as exc:
        raise RegistryError(source, f"{exc.error_count()} schema error(s): {exc.errors()[0]['msg']}") from None


async def load_registry(source: str, timeout: int = 30) -> Registry:
    """Read the registry from *source* (a path or an http(s) URL).

    Args:
        source: Local path or URL of ``registry.json``.
        timeout: HTTP timeout in seconds, ignored for local files.

    Returns:
        A validated, read-only-by-convention :class:`Registry`.

    Raises:
        RegistryError: On any read, network, JSON or schema failure.
    """
    if is_url(source):
        raw = await _fetch_remote(source, timeout)
    else:
        raw = _read_local(source)
    return parse_registry(raw, source)
