"""Compile a script into the bytecode artifact that gets embedded."""

import pathlib
import py_compile

from python_bootbundle.errors import CompileError


def compile_script(*, script_path: pathlib.Path, artifact_path: pathlib.Path) -> None:
    """Compile ``script_path`` to a ``.pyc`` file at ``artifact_path``.

    Tracebacks from the bundled program report the script's file name rather
    than the absolute path it had on the build machine.

    :param script_path: Python source file.
    :param artifact_path: Destination ``.pyc`` path.
    :raises CompileError: If the source cannot be read or does not compile.
    """

    try:
        py_compile.compile(
            str(script_path),
            cfile=str(artifact_path),
            dfile=script_path.name,
            doraise=True,
        )
    except py_compile.PyCompileError as exc:
        raise CompileError(f"Failed to compile {script_path}:\n{exc.msg}") from exc
    except OSError as exc:
        raise CompileError(f"Failed to read {script_path}: {exc}") from exc
