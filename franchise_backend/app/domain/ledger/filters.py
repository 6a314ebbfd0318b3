"""
Movement filter predicate object.

Replaces hand-built query strings: each optional criterion becomes a
SQLAlchemy clause, combined with AND.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import Select, select

from franchise_backend.app.core.timeutils import end_of_day, start_of_day
from franchise_backend.app.domain.ledger.ledgers import EntityId, LedgerTables


@dataclass(frozen=True)
class DateRange:
    """Closed interval [start, end] over `occurred_at`."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError("date range start must not be after its end")

    @classmethod
    def from_dates(cls, start: Optional[date], end: Optional[date]) -> Optional["DateRange"]:
        """Whole-day window; a missing bound is left open. None when both are missing."""
        if start is None and end is None:
            return None
        return cls(
            start=start_of_day(start or date.min),
            end=end_of_day(end or date.max),
        )


@dataclass(frozen=True)
class MovementFilter:
    franchise_id: Optional[int] = None
    entity_id: Optional[EntityId] = None
    date_range: Optional[DateRange] = None
    movement_types: Tuple = ()
    franchise_ids: Tuple[int, ...] = ()

    @property
    def touches_franchise(self) -> bool:
        return self.franchise_id is not None or bool(self.franchise_ids)

    def restricted_to(self, franchise_id: int) -> "MovementFilter":
        return replace(self, franchise_id=franchise_id)

    def clauses(self, ledger: LedgerTables) -> List:
        movement = ledger.movement
        conditions = []

        if self.entity_id is not None:
            conditions.append(ledger.movement_clause(ledger.coerce_id(self.entity_id)))

        if self.franchise_id is not None:
            conditions.append(ledger.movement_franchise_column == self.franchise_id)

        if self.franchise_ids:
            conditions.append(ledger.movement_franchise_column.in_(list(self.franchise_ids)))

        if self.date_range is not None:
            conditions.append(movement.occurred_at >= self.date_range.start)
            conditions.append(movement.occurred_at <= self.date_range.end)

        if self.movement_types:
            ledger.check_movement_types(self.movement_types)
            conditions.append(ledger.movement_type_column.in_(list(self.movement_types)))

        return conditions

    def select(self, ledger: LedgerTables) -> Select:
        """SELECT of movements matching this filter (no ordering applied)."""
        stmt = select(ledger.movement)
        if self.touches_franchise and ledger.needs_entity_join:
            stmt = stmt.join(ledger.entity, ledger.join_condition())
        return stmt.where(*self.clauses(ledger))
