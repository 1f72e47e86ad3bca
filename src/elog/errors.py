"""Exceptions raised by elog loggers."""


class ElogError(Exception):
    """Base class for every error raised by elog."""


class SinkWriteError(ElogError):
    """A sink failed to accept a formatted line.

    The original exception is chained as ``__cause__``.
    """


class PanicError(ElogError):
    """Raised after a panic-level line has been written.

    Attributes:
        message: The rendered message of the panic call
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
