"""Remote key derivation — host-independent, ``/``-separated object keys."""

from __future__ import annotations

from s3_deploy._errors import ConfigError


def normalize_prefix(raw: str) -> str:
    """Normalize a remote key prefix.

    Backslashes become forward slashes, empty and ``.`` segments are
    dropped. The result has no leading or trailing slash and may be empty.

    :raises ConfigError: If the prefix contains a ``..`` segment or a null byte.
    """
    if "\0" in raw:
        raise ConfigError("Remote prefix contains null byte", key=raw)
    parts: list[str] = []
    for segment in raw.replace("\\", "/").split("/"):
        if segment == "" or segment == ".":
            continue
        if segment == "..":
            raise ConfigError("Remote prefix contains '..' segment", key=raw)
        parts.append(segment)
    return "/".join(parts)


def relative_key(parts: tuple[str, ...] | list[str]) -> str:
    """Join local path components into a relative key.

    Components are joined verbatim so that names containing a backslash on
    POSIX hosts keep their own identity.
    """
    return "/".join(parts)


def remote_key(prefix: str, rel_key: str) -> str:
    """Build the remote key for a relative key under ``prefix``.

    :param prefix: Remote directory prefix (normalized here).
    :param rel_key: ``/``-separated key relative to the source root.
    """
    base = normalize_prefix(prefix)
    rel = rel_key.lstrip("/")
    if base:
        return f"{base}/{rel}"
    return rel
