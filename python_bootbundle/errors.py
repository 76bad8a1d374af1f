"""Error taxonomy shared by the builder, the loader and the CLI.

Every error carries the process exit code the CLI reports for it, so the
dispatcher never has to branch on the concrete type.
"""


class BundleError(RuntimeError):
    """Base class for every failure surfaced to the CLI.

    :ivar exit_code: Process exit code reported for this failure.
    """

    exit_code: int = 1


class SelfPathUnavailableError(BundleError):
    """Raised when the running launcher's own path cannot be resolved."""

    exit_code = 1


class BuildError(BundleError):
    """Raised when building a bundle fails."""

    exit_code = 3


class CompileError(BuildError):
    """Raised when the script cannot be compiled to bytecode."""

    exit_code = 2


_IO_STAGE_EXIT_CODES: dict[str, int] = {
    "read_self": 2,
    "temp": 11,
}


class BundleIOError(BundleError):
    """Raised when reading or writing bundle bytes fails.

    :ivar stage: Short name of the step that failed (``stub``, ``payload``,
        ``footer``, ``chmod``, ``output``, ``read_self`` or ``temp``).
    """

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage: str = stage
        self.exit_code = _IO_STAGE_EXIT_CODES.get(stage, 3)


class ExtractError(BundleError):
    """Raised when the launcher cannot recover its embedded payload."""


class TooShortForFooterError(ExtractError):
    """The file is smaller than a footer."""

    exit_code = 4


class NoPayloadError(ExtractError):
    """The file carries no footer; this is the bare stub."""

    exit_code = 7


class EmptyPayloadError(ExtractError):
    """The footer records a zero-length payload."""

    exit_code = 8


class CorruptFooterError(ExtractError):
    """The footer records more payload bytes than precede it."""

    exit_code = 9


class TruncatedPayloadError(ExtractError):
    """The file ended before the full payload was copied."""

    exit_code = 10


class RuntimeExecutionError(BundleError):
    """Raised when the extracted bytecode cannot be executed."""

    exit_code = 13
