"""Result types shared by the loader, the matchers and the match pass."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of matching one statement line.

    Absent ids mean "no match of that kind". ``note`` is the human-readable
    outcome written in front of the line description; ``None`` leaves the
    description untouched. An ambiguous outcome carries a note and no ids
    (apart from ``bpartner_id``, which may still be known).
    """

    invoice_id: int | None = None
    payment_id: int | None = None
    bpartner_id: int | None = None
    note: str | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.invoice_id is None
            and self.payment_id is None
            and self.bpartner_id is None
            and self.note is None
        )


@dataclass(slots=True)
class LoadResult:
    """Summary of a successful file load."""

    statement_reference: str
    staged_ids: list[int] = field(default_factory=list)
    # Non-fatal checksum mismatch messages, in row order.
    warnings: list[str] = field(default_factory=list)

    @property
    def staged(self) -> int:
        return len(self.staged_ids)


@dataclass(slots=True)
class MatchSummary:
    """Counters for one match pass over a statement."""

    statement_id: int
    examined: int = 0
    matched: int = 0
    noted: int = 0
    failed_lines: list[int] = field(default_factory=list)


__all__ = ["LoadResult", "MatchResult", "MatchSummary"]
