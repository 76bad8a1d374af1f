"""Resolve the path of the launcher that started this process.

A shell stub exports its own ``$0`` before exec'ing the interpreter; a frozen
executable is its own ``sys.executable``. Callers only see one function.
"""

import os
import pathlib
import sys

from python_bootbundle.errors import SelfPathUnavailableError


ENV_SELF: str = "PYTHON_BOOTBUNDLE_SELF"


def _candidate_self_path() -> pathlib.Path | None:
    override: str | None = os.environ.get(ENV_SELF)
    if override is not None and len(override) > 0:
        return pathlib.Path(override)
    if getattr(sys, "frozen", False) is True:
        return pathlib.Path(sys.executable)
    return None


def resolve_self_path() -> pathlib.Path:
    """Return the canonical path of the running launcher.

    :returns: Resolved path of an existing file.
    :raises SelfPathUnavailableError: If the process was not started from a
        stub or the recorded path does not exist.
    """

    candidate: pathlib.Path | None = _candidate_self_path()
    if candidate is None:
        raise SelfPathUnavailableError(
            f"Not running from a bootbundle stub (${ENV_SELF} is unset and the process is not frozen). "
            "Create a stub with python-bootbundle-stub."
        )

    try:
        resolved: pathlib.Path = candidate.resolve(strict=True)
    except OSError as exc:
        raise SelfPathUnavailableError(f"Cannot resolve own path {str(candidate)!r}: {exc}") from exc

    if resolved.is_file() is False:
        raise SelfPathUnavailableError(f"Own path is not a regular file: {resolved}")
    return resolved
