class GobenchError(Exception):
    """Base class for every failure gobench reports to the user."""

    error_code: str = "GOBENCH_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(GobenchError):
    """Invalid or conflicting options, detected before any side effect."""

    error_code = "CONFIGURATION_ERROR"


class ExternalCommandError(GobenchError):
    """An external tool could not be launched or exited non-zero.

    Attributes:
        command: The argv that failed.
        returncode: Exit status, or None if the process never started.
        detail: The tool's own diagnostic output, verbatim.
    """

    error_code = "EXTERNAL_COMMAND_ERROR"

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        detail: str = "",
    ) -> None:
        self.command = command or []
        self.returncode = returncode
        self.detail = detail
        super().__init__(message)


class RevisionQueryError(ExternalCommandError):
    """git could not report the current revision or working tree state."""

    error_code = "REVISION_QUERY_ERROR"


class RevisionMutationError(ExternalCommandError):
    """git checkout or stash failed."""

    error_code = "REVISION_MUTATION_ERROR"


class BenchmarkExecutionError(ExternalCommandError):
    """The benchmark engine exited non-zero or could not be launched."""

    error_code = "BENCHMARK_EXECUTION_ERROR"


class ToolInvocationError(ExternalCommandError):
    """The comparison tool or the profile viewer failed."""

    error_code = "TOOL_INVOCATION_ERROR"


__all__ = [
    "BenchmarkExecutionError",
    "ConfigurationError",
    "ExternalCommandError",
    "GobenchError",
    "RevisionMutationError",
    "RevisionQueryError",
    "ToolInvocationError",
]
