class LogHiveError(Exception):
    """Base class for errors that stop a pipeline run."""


class InvalidArgumentError(LogHiveError, ValueError):
    """Bad configuration or caller arguments. Raised before any I/O."""


class InputUnavailableError(LogHiveError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot read input {path!r}: {reason}")
        self.path = path
        self.reason = reason
