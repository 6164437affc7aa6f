"""Exceptions raised by the review engine."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError, StatementError


class GrokError(Exception):
    """Base class for every error raised by grokdb."""


class QueryError(GrokError):
    """A statement against the store failed.

    Carries the driver-level exception and, when SQLAlchemy knows it, the
    text of the offending statement.
    """

    def __init__(self, message: str, statement: str | None = None, orig: BaseException | None = None) -> None:
        super().__init__(message)
        self.statement = statement
        self.orig = orig

    @classmethod
    def from_sqlalchemy(cls, exc: SQLAlchemyError) -> QueryError:
        statement = exc.statement if isinstance(exc, StatementError) else None
        orig = getattr(exc, "orig", None) or exc
        return cls(str(orig), statement=statement, orig=orig)

    def __str__(self) -> str:
        message = super().__str__()
        if self.statement:
            return f"{message} [statement: {self.statement.strip()}]"
        return message


class NotFoundError(GrokError):
    """A deck, card, stash or relation that was asked for does not exist."""


class DeckCycleError(GrokError):
    """Reparenting would make a deck its own ancestor."""
