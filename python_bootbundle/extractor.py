"""Recover the payload embedded in the running launcher.

The loader reads the last ``FOOTER_LEN`` bytes of its own file, validates the
recorded payload length against the file size, and copies exactly that many
bytes into a fresh temporary file. The bundle itself is only ever read.
"""

from dataclasses import dataclass
import logging
import os
import pathlib
import tempfile
from typing import BinaryIO

from python_bootbundle.config import BootConfig, load_config, temp_root
from python_bootbundle.errors import (
    BundleIOError,
    CorruptFooterError,
    EmptyPayloadError,
    NoPayloadError,
    TooShortForFooterError,
)
from python_bootbundle.footer import FOOTER_LEN, FOOTER_NOT_PRESENT, FOOTER_TOO_SHORT, FooterResult, decode_footer
from python_bootbundle.selfpath import resolve_self_path
from python_bootbundle.streams import copy_stream


@dataclass(frozen=True, slots=True)
class ExtractedPayload:
    """A payload copied out of a bundle.

    The caller owns ``path`` and must delete it once it is done.

    :ivar path: Temporary file holding the payload.
    :ivar source: Bundle the payload was read from.
    :ivar payload_size: Length recorded in the footer.
    :ivar bytes_copied: Bytes actually copied (less than ``payload_size`` if truncated).
    """

    path: pathlib.Path
    source: pathlib.Path
    payload_size: int
    bytes_copied: int

    @property
    def truncated(self) -> bool:
        return self.bytes_copied < self.payload_size


def locate_payload(reader: BinaryIO, *, file_size: int) -> int:
    """Validate the footer at the end of ``reader`` and return the payload size.

    :param reader: Seekable binary stream over the whole bundle.
    :param file_size: Total stream length in bytes.
    :returns: Payload size recorded in the footer.
    :raises TooShortForFooterError: If the stream cannot hold a footer.
    :raises NoPayloadError: If the stream does not end with a footer.
    :raises EmptyPayloadError: If the footer records zero bytes.
    :raises CorruptFooterError: If the footer records more bytes than precede it.
    """

    if file_size < FOOTER_LEN:
        raise TooShortForFooterError(f"File is {file_size} bytes; a footer needs {FOOTER_LEN}.")

    reader.seek(file_size - FOOTER_LEN)
    footer: FooterResult = decode_footer(reader)
    if footer.kind == FOOTER_TOO_SHORT:
        raise TooShortForFooterError(f"Could not read {FOOTER_LEN} footer bytes.")
    if footer.kind == FOOTER_NOT_PRESENT:
        raise NoPayloadError("No embedded payload found (this is a bare stub).")

    if footer.payload_size == 0:
        raise EmptyPayloadError("Embedded payload size is zero.")

    available: int = file_size - FOOTER_LEN
    if footer.payload_size > available:
        raise CorruptFooterError(
            f"Footer claims {footer.payload_size} payload bytes but only {available} precede it."
        )
    return footer.payload_size


def discard_payload(path: pathlib.Path, *, logger: logging.Logger | None = None) -> None:
    """Delete an extracted payload file, logging instead of raising on failure.

    :param path: File to delete.
    :param logger: Optional logger.
    """

    if logger is None:
        logger = logging.getLogger("python_bootbundle")
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(f"python-bootbundle: could not remove temporary payload {path}: {exc}")


def extract_self_payload(
    *,
    self_path: pathlib.Path | None = None,
    temp_dir: pathlib.Path | None = None,
    logger: logging.Logger | None = None,
    config: BootConfig | None = None,
) -> ExtractedPayload:
    """Copy the running launcher's payload into a temporary file.

    :param self_path: Bundle to read. Defaults to the running launcher.
    :param temp_dir: Directory for the temp file. Defaults to the configured temp root.
    :param logger: Optional logger for debug output.
    :param config: Optional configuration (defaults to the environment).
    :returns: The extracted payload; check ``truncated`` before using it.
    :raises SelfPathUnavailableError: If the running launcher cannot be located.
    :raises ExtractError: If the bundle has no usable footer.
    :raises BundleIOError: If the bundle cannot be read or the temp file written.
    """

    if logger is None:
        logger = logging.getLogger("python_bootbundle")
    if config is None:
        config = load_config()
    if self_path is None:
        self_path = resolve_self_path()
    if temp_dir is None:
        try:
            temp_dir = temp_root(config)
        except OSError as exc:
            raise BundleIOError("temp", f"Temporary directory is unusable: {exc}") from exc

    try:
        bundle_f: BinaryIO = open(self_path, "rb")
    except OSError as exc:
        raise BundleIOError("read_self", f"Failed to open {self_path}: {exc}") from exc

    with bundle_f:
        file_size: int = bundle_f.seek(0, os.SEEK_END)
        payload_size: int = locate_payload(bundle_f, file_size=file_size)
        payload_start: int = file_size - FOOTER_LEN - payload_size
        if logger.isEnabledFor(logging.DEBUG) is True:
            logger.debug(
                f"python-bootbundle: {self_path} size={file_size} payload_start={payload_start} "
                f"payload_size={payload_size}"
            )
        bundle_f.seek(payload_start)

        try:
            fd, name = tempfile.mkstemp(
                prefix=f"embedded_payload_{os.getpid()}_",
                suffix=".pyc",
                dir=temp_dir,
            )
        except OSError as exc:
            raise BundleIOError("temp", f"Failed to create a temp file in {temp_dir}: {exc}") from exc

        tmp_path: pathlib.Path = pathlib.Path(name)
        try:
            with os.fdopen(fd, "wb") as out:
                copied: int = copy_stream(src=bundle_f, dst=out, length=payload_size)
        except OSError as exc:
            discard_payload(tmp_path, logger=logger)
            raise BundleIOError("temp", f"Failed to write payload to {tmp_path}: {exc}") from exc

    extracted: ExtractedPayload = ExtractedPayload(
        path=tmp_path,
        source=self_path,
        payload_size=payload_size,
        bytes_copied=copied,
    )
    if extracted.truncated is True:
        logger.warning(
            f"python-bootbundle: payload truncated ({copied} of {payload_size} bytes copied) from {self_path}"
        )
    return extracted
