"""Command line entry point shared by every stub and bundle.

``<stub> --build SCRIPT OUTPUT`` builds a bundle; every other invocation runs
the embedded payload and forwards all arguments to it.
"""

import argparse
import logging
import os
import pathlib
import sys

from python_bootbundle.builder import build_bundle
from python_bootbundle.config import BootConfig, load_config
from python_bootbundle.errors import BundleError, NoPayloadError, TruncatedPayloadError
from python_bootbundle.extractor import ExtractedPayload, discard_payload, extract_self_payload
from python_bootbundle.runtime import execute_artifact
from python_bootbundle.selfpath import ENV_SELF


BUILD_FLAG: str = "--build"


def _configure_logging(*, verbose: bool, quiet: bool, default_level: int) -> logging.Logger:
    """Configure the python-bootbundle logger.

    :param verbose: Enable debug output.
    :param quiet: Only show warnings and errors.
    :param default_level: Level used when neither flag is set.
    :returns: Configured logger.
    """

    level: int = default_level
    if quiet is True:
        level = logging.WARNING
    elif verbose is True:
        level = logging.DEBUG

    logger: logging.Logger = logging.getLogger("python_bootbundle")
    logger.setLevel(level)
    logger.propagate = False

    handler: logging.Handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def _program_name() -> str:
    self_path: str | None = os.environ.get(ENV_SELF)
    if self_path is not None and len(self_path) > 0:
        return pathlib.Path(self_path).name
    return "python-bootbundle"


def _build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog=_program_name(),
        description="Build a self-contained executable from a Python script.",
        add_help=False,
    )
    parser.add_argument(
        BUILD_FLAG,
        dest="build",
        nargs=2,
        type=pathlib.Path,
        required=True,
        metavar=("SCRIPT", "OUTPUT"),
        help="Compile SCRIPT and write a bundle to OUTPUT.",
    )
    return parser


def _is_build_request(argv: list[str]) -> bool:
    return len(argv) == 3 and argv[0] == BUILD_FLAG


def main(argv: list[str] | None = None) -> int:
    """Run the launcher.

    :param argv: Optional argv list (excluding program name).
    :returns: Exit code.
    """

    if argv is None:
        argv = sys.argv[1:]

    config: BootConfig = load_config()
    parser: argparse.ArgumentParser = _build_parser()

    if _is_build_request(argv) is True:
        logger: logging.Logger = _configure_logging(
            verbose=config.verbose,
            quiet=config.quiet,
            default_level=logging.INFO,
        )
        return _run_build(argv, parser=parser, logger=logger, config=config)

    logger = _configure_logging(
        verbose=config.verbose,
        quiet=config.quiet,
        default_level=logging.WARNING,
    )
    return _run_payload(argv, parser=parser, logger=logger, config=config)


def _run_build(
    argv: list[str],
    *,
    parser: argparse.ArgumentParser,
    logger: logging.Logger,
    config: BootConfig,
) -> int:
    """Handle ``--build SCRIPT OUTPUT``.

    :param argv: Build-mode argv, exactly ``[BUILD_FLAG, SCRIPT, OUTPUT]``.
    :param parser: Build-mode argument parser, used for the program name.
    :param logger: Configured logger.
    :param config: Resolved configuration.
    :returns: Exit code.
    """

    # Operands are taken literally; a script named "-x.py" is still a path.
    script_path: pathlib.Path = pathlib.Path(argv[1])
    output_path: pathlib.Path = pathlib.Path(argv[2])
    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"python-bootbundle: {parser.prog} {BUILD_FLAG} {script_path} {output_path}")
    try:
        build_bundle(
            script_path=script_path,
            output_path=output_path,
            logger=logger,
            config=config,
        )
    except BundleError as exc:
        logger.error(f"python-bootbundle: build failed: {exc}")
        return exc.exit_code
    return 0


def _run_payload(
    argv: list[str],
    *,
    parser: argparse.ArgumentParser,
    logger: logging.Logger,
    config: BootConfig,
) -> int:
    """Extract the embedded payload and run it.

    :param argv: Arguments forwarded to the embedded program.
    :param parser: Build-mode parser, used for the usage hint.
    :param logger: Configured logger.
    :param config: Resolved configuration.
    :returns: The program's exit code, or the failure's exit code.
    """

    try:
        extracted: ExtractedPayload = extract_self_payload(logger=logger, config=config)
    except BundleError as exc:
        _report_extract_failure(exc, parser=parser, logger=logger)
        return exc.exit_code

    if extracted.truncated is True:
        discard_payload(extracted.path, logger=logger)
        truncated: TruncatedPayloadError = TruncatedPayloadError(
            f"Payload truncated: copied {extracted.bytes_copied} of {extracted.payload_size} bytes."
        )
        _report_extract_failure(truncated, parser=parser, logger=logger)
        return truncated.exit_code

    try:
        return execute_artifact(
            extracted.path,
            argv=[str(extracted.source), *argv],
            logger=logger,
        )
    except BundleError as exc:
        logger.error(f"python-bootbundle: run failed: {exc}")
        return exc.exit_code
    finally:
        discard_payload(extracted.path, logger=logger)


def _report_extract_failure(
    exc: BundleError,
    *,
    parser: argparse.ArgumentParser,
    logger: logging.Logger,
) -> None:
    if isinstance(exc, NoPayloadError) is True:
        logger.warning(f"python-bootbundle: {exc}")
    else:
        logger.error(f"python-bootbundle: no runnable payload (code {exc.exit_code}): {exc}")
    sys.stderr.write(f"Usage to build: {parser.format_usage().removeprefix('usage: ')}")
