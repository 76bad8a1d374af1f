"""Bootloader stub generation.

The stub is a tiny ``/bin/sh`` launcher. It records its own path and exec's
the interpreter on ``python -m python_bootbundle``; because the shell is gone
after ``exec``, whatever bytes a build appends after the last line are never
read as script text.
"""

import argparse
import os
import pathlib
import shlex
import sys
import textwrap

from python_bootbundle.config import BootConfig, load_config
from python_bootbundle.selfpath import ENV_SELF


def render_stub(*, python: str) -> str:
    """Render the launcher script.

    :param python: Interpreter the stub execs (must have python_bootbundle installed).
    :returns: Stub source text, ending in a newline.
    """

    stub: str = _STUB_TEMPLATE
    stub = stub.replace("__PYBOOT_ENV_SELF__", ENV_SELF)
    stub = stub.replace("__PYBOOT_PYTHON__", shlex.quote(python))
    return stub


def mark_executable(path: pathlib.Path) -> None:
    """Add the execute bits to ``path`` (no-op on Windows).

    :param path: File to update.
    """

    if os.name == "nt":
        return
    mode: int = path.stat().st_mode
    path.chmod(mode | 0o111)


def write_stub(*, output_path: pathlib.Path, config: BootConfig | None = None) -> None:
    """Write a bare (payload-free) stub to ``output_path``.

    :param output_path: Destination path.
    :param config: Optional configuration (defaults to the environment).
    """

    if config is None:
        config = load_config()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(render_stub(python=config.python).encode("utf-8"))
    mark_executable(output_path)


def main(argv: list[str] | None = None) -> int:
    """Write a bare stub.

    :param argv: Optional argv list (excluding program name).
    :returns: Exit code.
    """

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="python-bootbundle-stub",
        description="Write a bare python-bootbundle stub that can build and run bundles.",
    )
    parser.add_argument(
        "output",
        type=pathlib.Path,
        help="Path of the stub to create.",
    )
    ns = parser.parse_args(argv)

    write_stub(output_path=ns.output)
    sys.stderr.write(f"python-bootbundle: wrote stub {ns.output}\n")
    return 0


_STUB_TEMPLATE: str = textwrap.dedent(
    """\
    #!/bin/sh
    # python-bootbundle stub. Anything after the exec line is payload data.
    __PYBOOT_ENV_SELF__="$0"
    export __PYBOOT_ENV_SELF__
    exec __PYBOOT_PYTHON__ -m python_bootbundle "$@"
    """
)


if __name__ == "__main__":
    sys.exit(main())
