from __future__ import annotations


class PokerError(Exception):
    """Base class for errors raised by the hold'em engine."""


class InvalidHandError(PokerError, ValueError):
    """The evaluator was handed fewer than five cards."""


class IllegalActionError(PokerError, ValueError):
    """A submitted action breaks the betting rules. State is left untouched."""

    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


class IllegalStateError(PokerError, RuntimeError):
    """A hand was requested without two funded players at the table."""
