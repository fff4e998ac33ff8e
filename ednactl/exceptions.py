from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit statuses, one per failure category."""

    OK = 0
    ERROR = 1
    UNKNOWN_ARGUMENT = 2  # click reports usage errors with status 2
    ENGINE_NOT_FOUND = 3
    ENGINE_UNREACHABLE = 4
    MISSING_ARTIFACT = 5
    MALFORMED_MOUNT = 6
    PROTECTED_TARGET = 7
    MISSING_DIRECTORY = 8
    ENGINE_COMMAND_FAILED = 9


class EdnactlError(Exception):
    """Base exception for all ednactl errors."""

    exit_code = ExitCode.ERROR


class MountError(EdnactlError):
    """Raised when a mount specification cannot be accepted."""


class MalformedSpecError(MountError):
    """Raised when a HOST[:CONTAINER] string cannot be parsed."""

    exit_code = ExitCode.MALFORMED_MOUNT


class ProtectedTargetError(MountError):
    """Raised when a mount would hide content baked into the image."""

    exit_code = ExitCode.PROTECTED_TARGET


class PreflightError(EdnactlError):
    """Raised when a host-side precondition for an action is not met."""


class MissingArtifactError(PreflightError):
    """Raised when a required build-context file is absent."""

    exit_code = ExitCode.MISSING_ARTIFACT


class MissingDirectoryError(PreflightError):
    """Raised when a host directory that is never auto-created is absent."""

    exit_code = ExitCode.MISSING_DIRECTORY


class EngineUnavailableError(EdnactlError):
    """Base exception for container engine availability failures."""


class EngineNotFoundError(EngineUnavailableError):
    """Raised when the engine binary is not on PATH."""

    exit_code = ExitCode.ENGINE_NOT_FOUND


class EngineUnreachableError(EngineUnavailableError):
    """Raised when the engine daemon is not running or inaccessible."""

    exit_code = ExitCode.ENGINE_UNREACHABLE


class EngineCommandError(EdnactlError):
    """Raised when a mutating engine command exits non-zero."""

    exit_code = ExitCode.ENGINE_COMMAND_FAILED

    def __init__(self, cmd, returncode, stderr=""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed with exit code {returncode}: {' '.join(self.cmd)}"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)
