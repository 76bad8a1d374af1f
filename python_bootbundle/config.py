"""Environment-driven configuration.

All knobs are environment variables so that a bundle, which forwards its whole
argv to the embedded script, can still be tuned.
"""

from dataclasses import dataclass
import os
import pathlib
import sys
import tempfile
from typing import Mapping


ENV_TMPDIR: str = "PYTHON_BOOTBUNDLE_TMPDIR"
ENV_PYTHON: str = "PYTHON_BOOTBUNDLE_PYTHON"
ENV_VERBOSE: str = "PYTHON_BOOTBUNDLE_VERBOSE"
ENV_QUIET: str = "PYTHON_BOOTBUNDLE_QUIET"


@dataclass(frozen=True, slots=True)
class BootConfig:
    """Resolved runtime configuration.

    :ivar temp_dir: Temp-directory override, or ``None`` for the platform default.
    :ivar python: Interpreter written into newly generated stubs.
    :ivar verbose: Enable debug logging.
    :ivar quiet: Only log warnings and errors.
    """

    temp_dir: pathlib.Path | None
    python: str
    verbose: bool
    quiet: bool


def _parse_env_bool(value: str) -> bool | None:
    """Parse a string into a boolean.

    :param value: Raw environment variable string.
    :returns: Parsed boolean, or ``None`` if unknown.
    """

    v: str = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return None


def _env_flag(environ: Mapping[str, str], name: str) -> bool:
    raw: str | None = environ.get(name)
    if raw is None or len(raw) == 0:
        return False
    return _parse_env_bool(raw) is True


def load_config(environ: Mapping[str, str] | None = None) -> BootConfig:
    """Read configuration from the environment.

    :param environ: Mapping to read from (defaults to ``os.environ``).
    :returns: Resolved configuration.
    """

    if environ is None:
        environ = os.environ

    temp_dir: pathlib.Path | None = None
    tmp_override: str | None = environ.get(ENV_TMPDIR)
    if tmp_override is not None and len(tmp_override) > 0:
        temp_dir = pathlib.Path(tmp_override)

    python: str = sys.executable
    python_override: str | None = environ.get(ENV_PYTHON)
    if python_override is not None and len(python_override) > 0:
        python = python_override

    return BootConfig(
        temp_dir=temp_dir,
        python=python,
        verbose=_env_flag(environ, ENV_VERBOSE),
        quiet=_env_flag(environ, ENV_QUIET),
    )


def temp_root(config: BootConfig) -> pathlib.Path:
    """Return the directory scratch files are created in.

    :param config: Resolved configuration.
    :returns: Existing temp directory.
    """

    if config.temp_dir is not None:
        config.temp_dir.mkdir(parents=True, exist_ok=True)
        return config.temp_dir
    return pathlib.Path(tempfile.gettempdir())
