from __future__ import annotations
from datetime import date
import pytest
from sqlalchemy import column, true

from blueprints.core.semesters import (
    Semester, normalize, label, legacy_code, variants, semester_filter, current_school_year,
)

@pytest.mark.parametrize("raw", ["1st", "First", "1st Semester", "first_semester", "1ST-SEMESTER", "  first  "])
def test_first_aliases(raw):
    assert normalize(raw) == Semester.FIRST

@pytest.mark.parametrize("raw", ["2nd", "Second", "2nd Semester", "second-semester", "SECOND_SEMESTER"])
def test_second_aliases(raw):
    assert normalize(raw) == Semester.SECOND

@pytest.mark.parametrize("raw", ["summer", "Summer", "SUMMER semester", "summer_semester"])
def test_summer_aliases(raw):
    assert normalize(raw) == Semester.SUMMER

@pytest.mark.parametrize("raw", [None, "", "   ", "third", "fall"])
def test_unknown_and_empty_fall_back_to_first(raw):
    assert normalize(raw) == Semester.FIRST

def test_normalize_is_idempotent():
    for sem in Semester:
        assert normalize(sem) is sem
        assert normalize(label(sem)) is sem
        assert normalize(legacy_code(sem)) is sem

def test_labels_and_legacy_codes():
    assert label(Semester.FIRST) == "First Semester"
    assert label(Semester.SECOND) == "Second Semester"
    assert label(Semester.SUMMER) == "Summer"
    assert label(None) == "First Semester"
    assert legacy_code(Semester.SECOND) == "2nd"
    assert legacy_code(Semester.SUMMER) == "summer"

def test_variants_all_normalize_back():
    for sem in Semester:
        vs = variants(sem)
        assert label(sem) in vs
        assert all(normalize(v) == sem for v in vs)

def test_semester_filter_all_disables():
    assert semester_filter(column("semester"), None).__class__ is true().__class__
    assert semester_filter(column("semester"), "all").__class__ is true().__class__
    assert semester_filter(column("semester"), " ALL ").__class__ is true().__class__

def test_semester_filter_matches_unset_rows():
    sql = str(semester_filter(column("semester"), "2nd").compile(compile_kwargs={"literal_binds": True}))
    assert "IS NULL" in sql
    assert "'Second Semester'" in sql
    assert "'First Semester'" not in sql

def test_current_school_year():
    assert current_school_year(date(2025, 9, 1)) == "2025-2026"
