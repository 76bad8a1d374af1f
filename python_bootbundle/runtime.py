"""Execute an extracted bytecode artifact in this interpreter."""

import builtins
import importlib.util
import logging
import marshal
import pathlib
import sys
import traceback
import types

from python_bootbundle.errors import RuntimeExecutionError


# PEP 552: magic (4) + flags (4) + mtime/hash (8).
PYC_HEADER_LEN: int = 16


def _load_code(artifact_path: pathlib.Path) -> types.CodeType:
    """Read a ``.pyc`` artifact and return its code object.

    :param artifact_path: Extracted ``.pyc`` path.
    :returns: Unmarshalled module code.
    :raises RuntimeExecutionError: If the file is unreadable, from another
        Python, or does not hold a code object.
    """

    try:
        data: bytes = artifact_path.read_bytes()
    except OSError as exc:
        raise RuntimeExecutionError(f"Cannot read extracted bytecode {artifact_path}: {exc}") from exc

    if len(data) < PYC_HEADER_LEN:
        raise RuntimeExecutionError(
            f"Extracted bytecode is only {len(data)} bytes; expected a {PYC_HEADER_LEN}-byte header."
        )
    if data[0:4] != importlib.util.MAGIC_NUMBER:
        raise RuntimeExecutionError(
            "Embedded bytecode was built for a different Python version.\n"
            f"Expected magic: {importlib.util.MAGIC_NUMBER.hex()}\n"
            f"Actual magic:   {data[0:4].hex()}"
        )

    try:
        code: object = marshal.loads(data[PYC_HEADER_LEN:])
    except (EOFError, ValueError, TypeError) as exc:
        raise RuntimeExecutionError(f"Embedded bytecode is corrupt: {exc}") from exc
    if isinstance(code, types.CodeType) is False:
        raise RuntimeExecutionError(f"Embedded bytecode holds a {type(code).__name__}, not a code object.")
    return code


def _exit_code_from_system_exit(exc: SystemExit) -> int:
    """Map a ``SystemExit`` to a process exit code like the interpreter does.

    :param exc: Exception raised by the program.
    :returns: Exit code.
    """

    code: object = exc.code
    if code is None:
        return 0
    if isinstance(code, int) is True:
        return code
    sys.stderr.write(f"{code}\n")
    return 1


def execute_artifact(
    artifact_path: pathlib.Path,
    *,
    argv: list[str],
    logger: logging.Logger | None = None,
) -> int:
    """Run a ``.pyc`` artifact as ``__main__``.

    ``sys.argv`` is exactly ``argv`` while the program runs, so ``argv[0]``
    should be the bundle path rather than the scratch artifact.

    :param artifact_path: Extracted ``.pyc`` path.
    :param argv: Value of ``sys.argv`` while the program runs.
    :param logger: Optional logger for debug output.
    :returns: The program's exit code.
    :raises RuntimeExecutionError: If the bytecode is unusable or the program
        raises an uncaught exception.
    """

    if logger is None:
        logger = logging.getLogger("python_bootbundle")

    code: types.CodeType = _load_code(artifact_path)
    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"python-bootbundle: executing {artifact_path} argv={argv!r}")

    main_module: types.ModuleType = types.ModuleType("__main__")
    main_module.__file__ = argv[0]
    main_module.__package__ = None
    main_module.__builtins__ = builtins

    saved_argv: list[str] = sys.argv
    saved_main: types.ModuleType | None = sys.modules.get("__main__")
    sys.argv = list(argv)
    sys.modules["__main__"] = main_module
    try:
        exec(code, main_module.__dict__)
    except SystemExit as exc:
        return _exit_code_from_system_exit(exc)
    except Exception as exc:
        traceback.print_exception(type(exc), exc, exc.__traceback__)
        raise RuntimeExecutionError(f"Embedded program raised {type(exc).__name__}: {exc}") from exc
    finally:
        sys.argv = saved_argv
        if saved_main is not None:
            sys.modules["__main__"] = saved_main
        else:
            sys.modules.pop("__main__", None)
    return 0
