"""Bundle builder.

This module implements the ``--build`` half of the launcher:

- It compiles the script to a ``.pyc`` inside a private temporary directory.
- It copies the stub (normally the running launcher itself) to the output.
- It appends the ``.pyc`` bytes and a footer recording their length, then
  marks the output executable.

The output is written in place and is not rolled back on failure; build to a
temporary path and rename it if you need atomic replacement.
"""

from dataclasses import dataclass
import logging
import pathlib
import tempfile
import time
from typing import BinaryIO

from python_bootbundle.compiler import compile_script
from python_bootbundle.config import BootConfig, load_config, temp_root
from python_bootbundle.errors import BundleIOError
from python_bootbundle.footer import FOOTER_LEN, encode_footer
from python_bootbundle.selfpath import resolve_self_path
from python_bootbundle.streams import copy_stream
from python_bootbundle.stub import mark_executable


@dataclass(frozen=True, slots=True)
class BundleStats:
    """Sizes of the parts of a freshly built bundle.

    :ivar stub_bytes: Bytes copied from the stub.
    :ivar payload_bytes: Bytes copied from the compiled artifact.
    :ivar total_bytes: Final output size (stub + payload + footer).
    """

    stub_bytes: int
    payload_bytes: int
    total_bytes: int


def _same_file(a: pathlib.Path, b: pathlib.Path) -> bool:
    if b.exists() is False:
        return False
    return a.resolve() == b.resolve()


def build_bundle(
    *,
    script_path: pathlib.Path,
    output_path: pathlib.Path,
    stub_path: pathlib.Path | None = None,
    logger: logging.Logger | None = None,
    config: BootConfig | None = None,
) -> BundleStats:
    """Build a bundle from a script.

    :param script_path: Python script to embed.
    :param output_path: Path of the bundle to write.
    :param stub_path: Stub to clone. Defaults to the running launcher.
    :param logger: Optional logger for build progress output.
    :param config: Optional configuration (defaults to the environment).
    :returns: Sizes of the written bundle.
    :raises SelfPathUnavailableError: If no stub is given and the running
        launcher cannot be located.
    :raises CompileError: If the script does not compile; ``output_path`` is
        left untouched.
    :raises BundleIOError: If the scratch directory cannot be created, or if
        copying or writing fails; a partial ``output_path`` may remain.
    """

    if logger is None:
        logger = logging.getLogger("python_bootbundle")
    if config is None:
        config = load_config()
    if stub_path is None:
        stub_path = resolve_self_path()

    if _same_file(stub_path, output_path) is True:
        raise BundleIOError("output", f"Refusing to overwrite the stub itself: {output_path}")

    t_total0: float = time.perf_counter()
    logger.info(f"python-bootbundle: stub={stub_path}")
    logger.info(f"python-bootbundle: script={script_path}")
    logger.info(f"python-bootbundle: output={output_path}")

    try:
        scratch: tempfile.TemporaryDirectory = tempfile.TemporaryDirectory(
            prefix="python_bootbundle_build_",
            dir=temp_root(config),
        )
    except OSError as exc:
        raise BundleIOError("scratch", f"Failed to create a build directory: {exc}") from exc

    with scratch as td:
        artifact_path: pathlib.Path = pathlib.Path(td) / "payload.pyc"

        t_compile0: float = time.perf_counter()
        compile_script(script_path=script_path, artifact_path=artifact_path)
        t_compile1: float = time.perf_counter()
        logger.info(f"python-bootbundle: compiled {script_path.name} in {t_compile1 - t_compile0:.2f}s")
        if logger.isEnabledFor(logging.DEBUG) is True:
            logger.debug(f"python-bootbundle: artifact={artifact_path} ({artifact_path.stat().st_size} bytes)")

        stats: BundleStats = _append_payload(
            stub_path=stub_path,
            artifact_path=artifact_path,
            output_path=output_path,
            logger=logger,
        )

    t_total1: float = time.perf_counter()
    logger.info(
        f"python-bootbundle: wrote {output_path} "
        f"(stub={stats.stub_bytes} payload={stats.payload_bytes} total={stats.total_bytes} bytes) "
        f"in {t_total1 - t_total0:.2f}s"
    )
    return stats


def _append_payload(
    *,
    stub_path: pathlib.Path,
    artifact_path: pathlib.Path,
    output_path: pathlib.Path,
    logger: logging.Logger,
) -> BundleStats:
    """Write ``stub ++ artifact ++ footer`` to ``output_path`` and mark it executable.

    :param stub_path: Stub to copy.
    :param artifact_path: Compiled artifact to append.
    :param output_path: Bundle destination.
    :param logger: Logger for progress output.
    :returns: Sizes of the written bundle.
    :raises BundleIOError: If any read or write fails.
    """

    try:
        stub_f: BinaryIO = open(stub_path, "rb")
    except OSError as exc:
        raise BundleIOError("stub", f"Failed to open stub {stub_path}: {exc}") from exc

    with stub_f:
        try:
            payload_f: BinaryIO = open(artifact_path, "rb")
        except OSError as exc:
            raise BundleIOError("payload", f"Failed to open compiled payload {artifact_path}: {exc}") from exc

        with payload_f:
            stage: str = "output"
            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
                with open(output_path, "wb") as out:
                    stage = "stub"
                    stub_bytes: int = copy_stream(src=stub_f, dst=out)
                    stage = "payload"
                    payload_bytes: int = copy_stream(src=payload_f, dst=out)
                    stage = "footer"
                    encode_footer(out, payload_bytes)
                stage = "chmod"
                mark_executable(output_path)
            except OSError as exc:
                if stage != "output":
                    logger.warning(
                        f"python-bootbundle: build failed during {stage}; partial output left at {output_path}"
                    )
                raise BundleIOError(stage, f"Failed to write {output_path}: {exc}") from exc

    return BundleStats(
        stub_bytes=stub_bytes,
        payload_bytes=payload_bytes,
        total_bytes=stub_bytes + payload_bytes + FOOTER_LEN,
    )
