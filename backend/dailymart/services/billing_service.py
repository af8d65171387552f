# Overview: Bill numbering; derives the next bill number from committed sales.

"""
Bill numbers are DERIVED, never reserved.

next_bill_number() scans the persisted sales table, takes the highest
sequence already used in the scheme's scope and adds one. There is no
counter row and no in-memory counter, so:
- numbering survives process restarts;
- a rolled-back sale leaves no gap that anyone else can observe, because
  the next derivation only sees committed bill numbers.

Schemes (BILL_NUMBER_SCHEME):
- "daily":  BILL-YYYYMMDD-0001, sequence restarts every local calendar day
- "global": BILL-0001, one sequence for the lifetime of the store

Sequences are zero-padded to 4 digits and simply grow wider past 9999.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from flask import current_app

from ..extensions import db
from ..models import Sale
from dailymart.time_utils import local_today

BILL_PREFIX = "BILL"
SCHEME_DAILY = "daily"
SCHEME_GLOBAL = "global"
SCHEMES = (SCHEME_DAILY, SCHEME_GLOBAL)

SEQUENCE_PAD = 4

_DAILY_RE = re.compile(rf"^{BILL_PREFIX}-(\d{{8}})-(\d+)$")
_GLOBAL_RE = re.compile(rf"^{BILL_PREFIX}-(\d+)$")


class BillNumberError(ValueError):
    """Raised for an unknown numbering scheme."""


def _resolve_scheme(scheme: str | None) -> str:
    if scheme is None:
        scheme = current_app.config.get("BILL_NUMBER_SCHEME", SCHEME_DAILY)
    if scheme not in SCHEMES:
        raise BillNumberError(f"Unknown bill number scheme: {scheme!r}")
    return scheme


def format_bill_number(sequence: int, *, on: date | None = None, scheme: str = SCHEME_DAILY) -> str:
    if scheme == SCHEME_DAILY:
        if on is None:
            raise BillNumberError("daily bill numbers need a date")
        return f"{BILL_PREFIX}-{on:%Y%m%d}-{sequence:0{SEQUENCE_PAD}d}"
    return f"{BILL_PREFIX}-{sequence:0{SEQUENCE_PAD}d}"


def parse_bill_number(value: str) -> tuple[date | None, int] | None:
    """
    Split a bill number into (date, sequence).

    Returns (None, seq) for global-scheme numbers and None for anything that
    is not a bill number of either scheme.
    """
    m = _DAILY_RE.match(value or "")
    if m:
        try:
            day = datetime.strptime(m.group(1), "%Y%m%d").date()
        except ValueError:
            return None
        return day, int(m.group(2))

    m = _GLOBAL_RE.match(value or "")
    if m:
        return None, int(m.group(1))
    return None


def _max_sequence(scheme: str, on: date | None) -> int:
    if scheme == SCHEME_DAILY:
        like = f"{BILL_PREFIX}-{on:%Y%m%d}-%"
    else:
        like = f"{BILL_PREFIX}-%"

    rows = db.session.query(Sale.bill_number).filter(Sale.bill_number.like(like)).all()

    highest = 0
    for (bill_number,) in rows:
        parsed = parse_bill_number(bill_number)
        if parsed is None:
            continue
        bill_day, seq = parsed
        if scheme == SCHEME_DAILY and bill_day != on:
            continue
        if scheme == SCHEME_GLOBAL and bill_day is not None:
            continue
        highest = max(highest, seq)
    return highest


def next_bill_number(*, scheme: str | None = None, on: date | None = None) -> str:
    """
    Derive the next bill number for the given scope.

    Pure read: nothing is written or reserved. Inside create_sale this runs
    within the sale's write transaction, which makes it authoritative; called
    on its own it is an advisory preview.

    Args:
        scheme: "daily" or "global" (defaults to BILL_NUMBER_SCHEME)
        on: local date the bill belongs to (daily scheme; defaults to today)
    """
    scheme = _resolve_scheme(scheme)
    if scheme == SCHEME_DAILY and on is None:
        on = local_today()

    sequence = _max_sequence(scheme, on) + 1
    return format_bill_number(sequence, on=on, scheme=scheme)
