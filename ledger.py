"""
Offense ledger: fine and jail-time totals over a list of offense rows, plus
the warrant decision derived from the remaining sentence.
"""

import re
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List, NamedTuple, Optional, Tuple, Union

from penal_codes import PenalCodeCatalog, PenalCodeEntry

_CENTS = Decimal("0.01")
_SECONDS_RE = re.compile(r"^\s*(\d+)")

JailTime = Union[int, str, None]


class Totals(NamedTuple):
    total_fine_amount: str
    total_jail_time_seconds: int


class Warrant(NamedTuple):
    needed: bool
    remaining_seconds: int


def parse_amount(value) -> Decimal:
    """Parse a fine amount, treating anything unparsable as zero."""
    if value is None:
        return Decimal("0")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


def parse_jail_time(value: JailTime) -> int:
    """Parse ``"60 Seconds"``, ``60`` or ``"None"`` into seconds."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    match = _SECONDS_RE.match(str(value))
    if not match:
        return 0
    return int(match.group(1))


def format_amount(amount) -> str:
    return str(parse_amount(amount).quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_currency(amount) -> str:
    return "${:,.2f}".format(parse_amount(amount).quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_jail_time(seconds: Optional[int]) -> str:
    if seconds is None:
        return "None"
    return f"{seconds} Seconds"


@dataclass
class OffenseRow:
    row_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    code: Optional[str] = None
    fine_amount: str = ""
    jail_time_seconds: Optional[int] = None

    @property
    def jail_time(self) -> str:
        if self.code is None:
            return ""
        return format_jail_time(self.jail_time_seconds)

    def apply(self, entry: PenalCodeEntry):
        self.code = entry.code
        self.fine_amount = entry.fine_amount
        self.jail_time_seconds = entry.jail_time_seconds


def _row_values(row) -> Tuple[object, JailTime]:
    if isinstance(row, OffenseRow):
        return row.fine_amount, row.jail_time_seconds
    fine, jail = row
    return fine, jail


def compute_totals(rows: Iterable) -> Totals:
    """Sum fines and jail time over ``rows``.

    Rows are either ``OffenseRow`` objects or ``(fine, jail_time)`` pairs as
    they arrive on the wire (``("1000.00", "60 Seconds")``).
    """
    total_fine = Decimal("0")
    total_jail = 0
    for row in rows:
        fine, jail = _row_values(row)
        total_fine += parse_amount(fine)
        total_jail += parse_jail_time(jail)
    return Totals(format_amount(total_fine), total_jail)


def clamp_remaining(remaining, total: int) -> int:
    seconds = parse_jail_time(remaining) if not isinstance(remaining, int) else remaining
    return max(0, min(seconds, max(total, 0)))


def compute_warrant(total_jail_time_seconds: int, remaining_seconds, time_served: bool) -> Warrant:
    if time_served:
        return Warrant(False, 0)
    remaining = clamp_remaining(remaining_seconds, total_jail_time_seconds)
    return Warrant(remaining > 0, remaining)


class OffenseLedger:
    """Ordered offense rows bound to one catalog.

    There is always at least one row. Totals are recomputed whenever a row
    changes and the remaining sentence resets to the new total.
    """

    def __init__(self, catalog: PenalCodeCatalog, rows: Optional[List[OffenseRow]] = None,
                 remaining_seconds: Optional[int] = None):
        self.catalog = catalog
        self._next_id = 1 + max((int(row.row_id) for row in rows or [] if row.row_id.isdigit()), default=0)
        self.rows: List[OffenseRow] = list(rows) if rows else [self._new_row()]
        self._totals = compute_totals(self.rows)
        if remaining_seconds is None:
            remaining_seconds = self._totals.total_jail_time_seconds
        self.remaining_seconds = clamp_remaining(remaining_seconds, self._totals.total_jail_time_seconds)

    def _new_row(self) -> OffenseRow:
        # short sequential ids keep the stored session small
        row = OffenseRow(row_id=str(self._next_id))
        self._next_id += 1
        return row

    def _find(self, row_id: str) -> Optional[OffenseRow]:
        return next((row for row in self.rows if row.row_id == row_id), None)

    def _recompute(self):
        self._totals = compute_totals(self.rows)
        self.remaining_seconds = self._totals.total_jail_time_seconds

    def add_row(self) -> str:
        row = self._new_row()
        self.rows.append(row)
        return row.row_id

    def remove_row(self, row_id: str) -> bool:
        if len(self.rows) <= 1:
            return False
        row = self._find(row_id)
        if row is None:
            return False
        self.rows.remove(row)
        self._recompute()
        return True

    def select_code(self, row_id: str, code: str) -> bool:
        entry = self.catalog.lookup(code)
        row = self._find(row_id)
        if entry is None or row is None:
            return False
        row.apply(entry)
        self._recompute()
        return True

    def totals(self) -> Totals:
        return self._totals

    def set_remaining(self, seconds) -> int:
        self.remaining_seconds = clamp_remaining(seconds, self._totals.total_jail_time_seconds)
        return self.remaining_seconds

    def warrant(self, time_served: bool) -> Warrant:
        return compute_warrant(self._totals.total_jail_time_seconds, self.remaining_seconds, time_served)

    def selected_codes(self) -> List[str]:
        return [row.code for row in self.rows if row.code]

    def clear(self):
        self.rows = [self._new_row()]
        self._recompute()

    def to_state(self) -> dict:
        """Compact form for the cookie session: ids, catalog positions, remaining time."""
        return {
            "rows": [[row.row_id, self.catalog.position(row.code)] for row in self.rows],
            "next": self._next_id,
            "remaining": self.remaining_seconds,
        }

    @classmethod
    def from_state(cls, catalog: PenalCodeCatalog, state: dict) -> "OffenseLedger":
        rows = []
        for row_id, position in state.get("rows") or []:
            row = OffenseRow(row_id=str(row_id))
            entry = catalog.at(position)
            if entry is not None:
                row.apply(entry)
            rows.append(row)
        ledger = cls(catalog, rows, state.get("remaining"))
        ledger._next_id = max(ledger._next_id, state.get("next") or 0)
        return ledger

    def __len__(self):
        return len(self.rows)
