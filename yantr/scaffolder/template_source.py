"""Fetch component template files by registry path.

Templates are served either from a local directory (``YANTR_TEMPLATES_DIR``,
handy for developing templates) or from the remote template base URL.  Either
way a failure is reported as :class:`TemplateFetchError`, which the applier
turns into a per-component warning.

Typical usage::

    source = TemplateSource.from_settings(settings)
    text = await source.fetch("express/auth/jwt.ts")
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx

from yantr.config import DEFAULT_TEMPLATES_URL, Settings


class TemplateFetchError(Exception):
    """Raised when a template file cannot be fetched."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to fetch template {path}: {message}")


class TemplateSource:
    """Resolves registry template paths to file contents."""

    def __init__(
        self,
        base_url: str = DEFAULT_TEMPLATES_URL,
        templates_dir: str | Path | None = None,
        timeout: int = 30,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.templates_dir = Path(templates_dir) if templates_dir is not None else None
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "TemplateSource":
        return cls(
            base_url=settings.templates_url,
            templates_dir=settings.templates_dir,
            timeout=settings.request_timeout,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            follow_redirects=True,
        )

    def _local_path(self, path: str) -> Path:
        assert self.templates_dir is not None
        root = self.templates_dir.resolve()
        candidate = (root / path).resolve()
        if root != candidate and root not in candidate.parents:
            raise TemplateFetchError(path, "path escapes the templates directory")
        return candidate

    async def _fetch_local(self, path: str) -> str:
        file_path = self._local_path(path)
        try:
            return await asyncio.to_thread(file_path.read_text, encoding="utf-8")
        except FileNotFoundError:
            raise TemplateFetchError(path, f"not found in {self.templates_dir}") from None
        except UnicodeDecodeError as exc:
            raise TemplateFetchError(path, f"not valid UTF-8 ({exc.reason})") from None
        except OSError as exc:
            raise TemplateFetchError(path, str(exc)) from None

    async def _fetch_remote(self, path: str) -> str:
        try:
            async with self._client() as client:
                response = await client.get(f"/{path.lstrip('/')}")
                response.raise_for_status()
                return response.text
        except httpx.ConnectError:
            raise TemplateFetchError(path, f"cannot connect to {self.base_url}") from None
        except httpx.TimeoutException:
            raise TemplateFetchError(path, f"request timed out after {self.timeout}s") from None
        except httpx.HTTPStatusError as exc:
            raise TemplateFetchError(path, f"HTTP {exc.response.status_code}") from None
        except httpx.HTTPError as exc:
            raise TemplateFetchError(path, str(exc) or exc.__class__.__name__) from None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(self, path: str) -> str:
        """Return the text of the template at registry *path*.

        Raises:
            TemplateFetchError: If the template cannot be read or downloaded.
        """
        if self.templates_dir is not None:
            return await self._fetch_local(path)
        return await self._fetch_remote(path)
