"""
Exception types raised by the fleet replay engine and its collaborators.
"""


class FleetReplayError(Exception):
    """Base class for all fleet replay errors."""


class DecodeError(FleetReplayError, ValueError):
    """
    Raised when a wire-encoded fight record cannot be decoded.

    Covers wrong array lengths, non-numeric strings and negative counts.
    Raised before any playback state exists; never retried.
    """


class ResolutionError(FleetReplayError):
    """
    Raised when a move cannot be applied to the fleet state.

    A move that names a ship type outside the ship table, or a second
    move for the same ship type on the same side within one round,
    aborts the replay in progress.
    """


class CPLimitError(FleetReplayError, ValueError):
    """Raised when a fleet selection exceeds its combat power cap."""

    def __init__(self, cp: int, cap: int):
        self.cp = cp
        self.cap = cap
        super().__init__(f"Fleet CP {cp} exceeds cap of {cap}")


class DefenceNotFoundError(FleetReplayError, KeyError):
    """Raised when a ranked operation names an account without a defence."""

    def __init__(self, account: str):
        self.account = account
        super().__init__(f"No defence registered for account '{account}'")

    def __str__(self) -> str:
        return self.args[0]


class GatewayError(FleetReplayError):
    """Raised when the remote fight service fails or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
