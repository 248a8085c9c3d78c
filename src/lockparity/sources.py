"""
Lockfile byte sources.

A lockfile is given as a plain path, a file:// URL, or an http(s):// URL.
Remote lockfiles are fetched with httpx; both sides of a comparison are
fetched concurrently.
"""

import asyncio
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
from httpx import RequestError

from .cli_config import LockParityConfig, get_config
from .error_handling import log_network_error, sanitize_url
from .exceptions import SourceError


def _local_path(src: str) -> Optional[Path]:
    """Return the filesystem path for `src`, or None if it is a remote URL."""
    parsed = urlparse(src)
    # Windows drive letters parse as one-letter schemes
    if not parsed.scheme or len(parsed.scheme) == 1:
        return Path(src)
    if parsed.scheme == "file":
        if parsed.netloc and parsed.netloc != "localhost":
            raise SourceError(f"file URL with remote host is not supported: {src}", src)
        return Path(url2pathname(parsed.path))
    if parsed.scheme in ("http", "https"):
        return None
    raise SourceError(f"Unsupported URL scheme: {parsed.scheme}", src)


class LockfileSource:
    """
    Fetches raw lockfile bytes from local paths and URLs.

    Use as an async context manager; the httpx client lives for the
    duration of the context.
    """

    def __init__(
        self,
        config: Optional[LockParityConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_config()
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None
        self._headers = {"User-Agent": self.config.network.user_agent}

    async def __aenter__(self):
        network = self.config.network
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(network.read_timeout, connect=network.connect_timeout),
            headers=self._headers,
            follow_redirects=network.follow_redirects,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.aclose()
            self.client = None

    @property
    def max_bytes(self) -> int:
        return self.config.security.max_file_size_bytes

    def read_local(self, path: Path, src: str) -> bytes:
        if not path.exists():
            raise SourceError(f"Lockfile does not exist: {path}", src)
        if not path.is_file():
            raise SourceError(f"Lockfile path is not a file: {path}", src)
        try:
            size = path.stat().st_size
            if size > self.max_bytes:
                raise SourceError(
                    f"Lockfile too large: {size} bytes (max: {self.max_bytes})", src
                )
            return path.read_bytes()
        except PermissionError:
            raise SourceError(f"Permission denied reading lockfile: {path}", src)
        except OSError as e:
            raise SourceError(f"Error reading lockfile {path}: {e}", src)

    async def fetch_remote(self, src: str) -> bytes:
        if self.client is None:
            raise RuntimeError("LockfileSource must be used as an async context manager")
        try:
            response = await self.client.get(src)
        except RequestError as e:
            log_network_error(
                "Failed to fetch lockfile", "sources", "fetch_remote", url=src, exception=e
            )
            raise SourceError(f"Failed to fetch lockfile {sanitize_url(src)}: {e}", src)

        if not response.is_success:
            log_network_error(
                "Lockfile request was not successful",
                "sources",
                "fetch_remote",
                url=src,
                status_code=response.status_code,
            )
            raise SourceError(
                f"Failed to fetch lockfile {sanitize_url(src)}: "
                f"HTTP {response.status_code} {response.text[:200]}",
                src,
            )

        content = response.content
        if len(content) > self.max_bytes:
            raise SourceError(
                f"Lockfile too large: {len(content)} bytes (max: {self.max_bytes})", src
            )
        return content

    async def fetch(self, src: str) -> bytes:
        """Fetch lockfile bytes from a path or URL."""
        path = _local_path(src)
        if path is not None:
            return self.read_local(path, src)
        return await self.fetch_remote(src)


async def fetch_pair(
    src_a: str,
    src_b: str,
    config: Optional[LockParityConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[bytes, bytes]:
    """Fetch both lockfiles concurrently."""
    async with LockfileSource(config, transport) as source:
        content_a, content_b = await asyncio.gather(source.fetch(src_a), source.fetch(src_b))
    return content_a, content_b
