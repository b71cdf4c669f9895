from __future__ import annotations


class CmusError(Exception):
    """Base class for everything raised by the poll/parse/diff core."""


# ---------- Protocol errors (malformed poll response, discard the cycle) ----------


class ProtocolError(CmusError):
    pass


class NoStatusError(ProtocolError):
    def __init__(self) -> None:
        super().__init__("No status")


class UnknownStatusError(ProtocolError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Unknown status: {value}")
        self.value = value


class EmptyPathError(ProtocolError):
    def __init__(self) -> None:
        super().__init__("Empty path")


class DurationError(ProtocolError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Duration error: {reason}")


class PositionError(ProtocolError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Position error: {reason}")


class UnknownShuffleModeError(ProtocolError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Unknown shuffle mode: {value}")
        self.value = value


class UnknownAAAModeError(ProtocolError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Unknown AAA mode: {value}")
        self.value = value


class VolumeError(ProtocolError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Volume error: {reason}")


class CorruptedResponseError(ProtocolError):
    def __init__(self, line: str) -> None:
        super().__init__(f"Corrupted cmus response: {line!r}")
        self.line = line


# ---------- Non-protocol conditions ----------


class NoEventsError(CmusError):
    """Raised by the diff when either side is the initial sentinel snapshot."""

    def __init__(self) -> None:
        super().__init__("No events")


class CmusUnavailableError(CmusError):
    """The player could not be queried (not running, socket gone, bad output)."""
