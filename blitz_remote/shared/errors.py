"""
MODULE OVERVIEW:
Exception types for the remote-control client.

WHAT IS HAPPENING HERE:
None of these ever escape to the caller of connect/send/close. The connection
manager and the decoder catch them and turn them into ErrorEvent messages on
the error stream. They exist so the two error classes (connection vs protocol)
can be told apart in code and in logs.
"""


class RemoteError(Exception):
    """Base exception for remote-control client errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ConnectTimeoutError(RemoteError):
    """The WebSocket handshake did not finish within the connect timeout."""

    pass


class FrameDecodeError(RemoteError):
    """An inbound frame was malformed or did not match its schema."""

    def __init__(self, message: str, raw: str, cause: Exception | None = None):
        super().__init__(message, cause)
        self.raw = raw
