"""Configuration helpers: XDG paths, atomic writes, and CLI precedence resolution.

The library itself takes an explicit :class:`~linkshield.models.ClientConfig`
and has no defaults for the API key or the cache file.  This module supplies
what the ``linkshield`` CLI needs on top of that:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.linkshield/`` on macOS and Windows. See :func:`get_cache_dir` and
  :func:`get_data_dir`.
* **Credential resolution** -- :func:`resolve_api_key` reads the key from an
  env var, a file, or takes it literally.
* **Precedence resolution** -- :func:`resolve_client_config` merges CLI flags,
  environment variables and defaults into a ``ClientConfig``.

File writes go through :func:`atomic_write` (temp file then rename) so that a
crash never leaves a truncated cache snapshot behind.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from linkshield.exceptions import ConfigError
from linkshield.models import ClientConfig

_APP_NAME = "linkshield"
_CACHE_FILENAME = "cache.json"

ENV_API_KEY = "LINKSHIELD_API_KEY"
ENV_CACHE_FILE = "LINKSHIELD_CACHE_FILE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the default verdict cache file. Its content can be deleted at any
    time; the next lookup simply goes back to the network.

    On Linux/BSD: ``$XDG_CACHE_HOME/linkshield/`` (default ``~/.cache/linkshield/``).
    On macOS/Windows: ``~/.linkshield/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CACHE_HOME", (".cache",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/linkshield/`` (default ``~/.local/share/linkshield/``).
    On macOS/Windows: ``~/.linkshield/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_cache_file() -> Path:
    """Return the default verdict cache path (``<cache_dir>/cache.json``)."""
    return get_cache_dir() / _CACHE_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up and the original exception propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Credential source resolution ---


def resolve_api_key(source: str) -> str:
    """Resolve an API key from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else -- used verbatim as the key

    Args:
        source: The source descriptor string.

    Returns:
        The resolved API key.

    Raises:
        ConfigError: If the env var is unset or the file cannot be read.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"API key file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read API key file {path}: {exc}") from exc

    return source


# --- Precedence resolution ---


def resolve_client_config(
    cli_api_key: Optional[str] = None,
    cli_cache_file: Optional[str] = None,
) -> ClientConfig:
    """Build the CLI's :class:`~linkshield.models.ClientConfig`.

    Precedence (high to low):
        1. CLI flags (``--api-key``, ``--cache-file``)
        2. Environment variables (``LINKSHIELD_API_KEY``, ``LINKSHIELD_CACHE_FILE``)
        3. Default cache file under :func:`get_cache_dir` (no default API key)

    Raises:
        ConfigError: If no API key is available from any source.
    """
    key_source = cli_api_key or os.environ.get(ENV_API_KEY)
    if not key_source:
        raise ConfigError(
            f"No API key configured. Pass --api-key or set {ENV_API_KEY}."
        )
    api_key = resolve_api_key(key_source)

    return ClientConfig(api_key=api_key, cache_file=resolve_cache_file(cli_cache_file))


def resolve_cache_file(cli_cache_file: Optional[str] = None) -> Path:
    """Resolve the cache file path: CLI flag > ``LINKSHIELD_CACHE_FILE`` > default."""
    value = cli_cache_file or os.environ.get(ENV_CACHE_FILE)
    if value:
        return Path(value).expanduser()
    return default_cache_file()
