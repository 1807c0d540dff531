"""Custom exceptions for the cortado pipeline"""

from enum import Enum


class CortadoError(Exception):
    """Base exception for all cortado errors"""
    def __init__(self, message: str, module: str = None):
        self.message = message
        self.module = module or "unknown"
        super().__init__(f"[{self.module}] {self.message}")


class InvalidPlanInputError(CortadoError):
    """Segment planner called with a duration or length it cannot plan"""


class UnreadableMediaError(CortadoError):
    """Container metadata could not be read from the input"""


class EngineLoadError(CortadoError):
    """The processing engine could not be located or started"""
    def __init__(self, reason: str, module: str = "engine"):
        self.reason = reason
        super().__init__(f"Engine load failed: {reason}", module)


class EngineNotReadyError(CortadoError):
    """Engine used before a successful initialize()"""
    def __init__(self, message: str = "Engine has not been initialized", module: str = "engine"):
        super().__init__(message, module)


class EngineExecutionError(CortadoError):
    """The engine reported a failure while running a command"""
    def __init__(self, message: str, module: str = "engine"):
        super().__init__(message, module)


class EngineIOErrorKind(Enum):
    NOT_FOUND = "not-found"
    OTHER = "other"


class EngineIOError(CortadoError):
    """Read, write or delete failed in the engine storage"""
    def __init__(self, message: str, kind: EngineIOErrorKind = EngineIOErrorKind.OTHER,
                 name: str = None, module: str = "engine"):
        self.kind = kind
        self.name = name
        super().__init__(message, module)

    @property
    def not_found(self) -> bool:
        return self.kind is EngineIOErrorKind.NOT_FOUND


class BusyError(CortadoError):
    """A job or engine command is already in flight"""


class ProcessError(CortadoError):
    """An external process exited unsuccessfully"""
    def __init__(self, message: str, exit_code: int = 0, output: str = "", module: str = None):
        """Initialize process error.

        Args:
            message: Error message
            exit_code: Process exit code
            output: Process output for debugging
        """
        super().__init__(message, module)
        self.exit_code = exit_code
        self.output = output


def error_message(error: BaseException) -> str:
    """Human-readable text of an error, without the module prefix"""
    if isinstance(error, CortadoError):
        return error.message
    return str(error) or type(error).__name__
