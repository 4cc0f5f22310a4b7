"""Resolution of relative external URLs against the host repository's origin."""

from __future__ import annotations

import posixpath
import re
from urllib.parse import urlsplit, urlunsplit

from git_externals.engine.errors import ConfigError

# user@host:path (scp-like syntax, no scheme)
_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>.*)$")


def is_relative(url: str) -> bool:
    return url.startswith(".")


def _split_origin(origin_url: str) -> tuple[str, str, str]:
    """Return ``(scheme, netloc, path)``, defaulting to ``ssh`` without a scheme.

    Absolute local paths keep an empty scheme.
    """
    if "://" in origin_url:
        parts = urlsplit(origin_url)
        return parts.scheme, parts.netloc, parts.path

    if origin_url.startswith("/"):
        return "", "", origin_url

    match = _SCP_LIKE.match(origin_url)
    if match:
        user = match.group("user")
        netloc = f"{user}@{match.group('host')}" if user else match.group("host")
        path = match.group("path")
        return "ssh", netloc, path if path.startswith("/") else f"/{path}"

    raise ConfigError(f"Cannot interpret origin URL {origin_url!r}")


def resolve_url(url: str, origin_url: str | None) -> str:
    """Resolve a ``.``-prefixed *url* relative to *origin_url*.

    The origin path is treated as a directory, so ``../lib.git`` next to
    ``ssh://host/org/app.git`` becomes ``ssh://host/org/lib.git``.
    Absolute URLs are returned unchanged.
    """
    if not is_relative(url):
        return url
    if not origin_url:
        raise ConfigError(f"Relative URL {url!r} needs a configured remote.origin.url")

    scheme, netloc, path = _split_origin(origin_url.rstrip("/"))
    joined = posixpath.normpath(posixpath.join(path or "/", url))
    return urlunsplit((scheme, netloc, joined, "", ""))
