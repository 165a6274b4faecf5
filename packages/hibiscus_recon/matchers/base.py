"""Matcher protocol and the outcome-note helpers shared by all matchers."""

from __future__ import annotations

import re
from typing import Protocol

from db.models.erp import ErpBankStatementLine
from sqlalchemy.orm import Session

from ..models import MatchResult

NOTE_SENTINEL = "¡"

# A leading note written by a previous match run (single line, greedy).
_PREVIOUS_NOTE_RE = re.compile(r"^¡ .* ¡ ")


class BankStatementMatcher(Protocol):
    """Find the counterpart of one posted statement line.

    Implementations only read from ``session``; applying the result to the
    line is the match pass's job. Ambiguity is reported through
    ``MatchResult.note``, never raised.
    """

    def find_match(self, session: Session, line: ErpBankStatementLine) -> MatchResult: ...


def strip_outcome_note(description: str | None) -> str:
    """Remove a note left by an earlier run; ``None`` becomes ``""``."""

    if description is None:
        return ""
    return _PREVIOUS_NOTE_RE.sub("", description, count=1)


def with_outcome_note(description: str | None, note: str) -> str:
    """Return ``description`` prefixed with ``note`` in the sentinel bracket.

    Any previous note is replaced, so re-running a matcher never stacks notes.
    """

    return f"{NOTE_SENTINEL} {note} {NOTE_SENTINEL} {strip_outcome_note(description)}"


__all__ = ["BankStatementMatcher", "NOTE_SENTINEL", "strip_outcome_note", "with_outcome_note"]
