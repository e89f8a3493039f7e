"""Semester labels.

Stored semester columns are free text (``"1st"``, ``"Second Semester"``,
``"summer"``, ``""`` ...). Everything that compares or keys on a semester goes
through :func:`normalize` first.
"""
from __future__ import annotations
import re
from datetime import date
from enum import Enum

from sqlalchemy import or_, true


class Semester(str, Enum):
    FIRST = "first"
    SECOND = "second"
    SUMMER = "summer"


_LEGACY = {Semester.FIRST: "1st", Semester.SECOND: "2nd", Semester.SUMMER: "summer"}
_LABELS = {Semester.FIRST: "First Semester", Semester.SECOND: "Second Semester", Semester.SUMMER: "Summer"}

_ALIASES: dict[str, Semester] = {
    "1st": Semester.FIRST, "first": Semester.FIRST,
    "1st semester": Semester.FIRST, "first semester": Semester.FIRST,
    "2nd": Semester.SECOND, "second": Semester.SECOND,
    "2nd semester": Semester.SECOND, "second semester": Semester.SECOND,
    "summer": Semester.SUMMER, "summer semester": Semester.SUMMER,
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def normalize(raw) -> Semester:
    """Map free text to a canonical tag. Unknown and empty input is FIRST."""
    if isinstance(raw, Semester):
        return raw
    if raw is None:
        return Semester.FIRST
    key = _SEPARATORS.sub(" ", str(raw).strip().lower())
    return _ALIASES.get(key, Semester.FIRST)


def label(sem: Semester | None) -> str:
    if sem == Semester.SECOND:
        return _LABELS[Semester.SECOND]
    if sem == Semester.SUMMER:
        return _LABELS[Semester.SUMMER]
    return _LABELS[Semester.FIRST]


def legacy_code(sem: Semester) -> str:
    return _LEGACY[normalize(sem)]


def variants(sem: Semester) -> frozenset[str]:
    """Every stored spelling that means ``sem``."""
    sem = normalize(sem)
    if sem == Semester.SUMMER:
        words = ["summer"]
    else:
        words = [_LEGACY[sem], sem.value]
    out = {label(sem)}
    for w in words:
        for form in (w, w.capitalize()):
            out.add(form)
        for joiner in (" ", "_", "-"):
            out.add(f"{w}{joiner}semester")
        out.add(f"{w.capitalize()} Semester")
    return frozenset(out)


def semester_filter(column, requested):
    """SQL criterion for ``requested`` on a free-text column.

    Rows with a NULL or empty semester match any request. ``"all"`` (or no
    request) disables the filter.
    """
    if requested is None or str(requested).strip().lower() in ("", "all"):
        return true()
    wanted = sorted(variants(normalize(requested)))
    return or_(column.in_(wanted), column.is_(None), column == "")


def current_school_year(today: date | None = None) -> str:
    year = (today or date.today()).year
    return f"{year}-{year + 1}"
