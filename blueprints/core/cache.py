"""Read-through cache of the portal's aggregate views.

Views are cached for a fixed TTL and every write names the keys it can make
stale through :data:`INVALIDATION_MAP`.
"""
from __future__ import annotations
import itertools
import logging
import threading
from enum import Enum
from string import Formatter
from typing import Any, Callable, Iterable

from flask import current_app

from extensions import cache
from .semesters import Semester

log = logging.getLogger(__name__)

# ---------- keys ----------
SUBJECTS = "admin:subjects"
BUILDINGS = "admin:buildings"
SECTIONS = "admin:sections"
SECTIONS_WITH_LOAD = "admin:sections_with_load"
SCHEDULES = "admin:schedules"
DASHBOARD_STATS = "admin:dashboard_stats"
LOWEST_RATED = "admin:lowest_rated"
TEACHER_SCHEDULE = "teacher:schedule:{teacher_id}"
TEACHER_SECTIONS = "teacher:sections:{teacher_id}"
TEACHER_ASSIGNMENTS = "teacher:assignments:{teacher_id}"
TEACHER_STUDENTS = "teacher:students:{teacher_id}"
STUDENT_ASSIGNMENT = "student:assignment:{user_id}"
STUDENT_STUDY_LOAD = "student:study_load:{user_id}:{semester}"

SEMESTER_KEYS = tuple(s.value for s in Semester) + ("all",)


class Mutation(str, Enum):
    SECTION = "section"
    SUBJECT = "subject"
    BUILDING = "building"
    TEACHER_ASSIGNMENT = "teacher_assignment"
    USER_ASSIGNMENT = "user_assignment"
    ROOM_ASSIGNMENT = "room_assignment"
    SCHEDULE = "schedule"
    STUDY_LOAD = "study_load"


INVALIDATION_MAP: dict[Mutation, tuple[str, ...]] = {
    Mutation.SECTION: (
        SECTIONS, SECTIONS_WITH_LOAD, SCHEDULES, DASHBOARD_STATS,
        TEACHER_SCHEDULE, TEACHER_SECTIONS, TEACHER_ASSIGNMENTS, TEACHER_STUDENTS,
        STUDENT_ASSIGNMENT, STUDENT_STUDY_LOAD,
    ),
    Mutation.SUBJECT: (
        SUBJECTS, SCHEDULES, DASHBOARD_STATS,
        TEACHER_SCHEDULE, TEACHER_SECTIONS, TEACHER_ASSIGNMENTS,
    ),
    Mutation.BUILDING: (
        BUILDINGS, SCHEDULES, DASHBOARD_STATS,
        TEACHER_SCHEDULE, STUDENT_ASSIGNMENT,
    ),
    Mutation.TEACHER_ASSIGNMENT: (
        SCHEDULES, SECTIONS_WITH_LOAD, DASHBOARD_STATS,
        TEACHER_SCHEDULE, TEACHER_SECTIONS, TEACHER_ASSIGNMENTS, TEACHER_STUDENTS,
    ),
    Mutation.USER_ASSIGNMENT: (
        SECTIONS, DASHBOARD_STATS,
        TEACHER_SECTIONS, TEACHER_STUDENTS, STUDENT_ASSIGNMENT, STUDENT_STUDY_LOAD,
    ),
    Mutation.ROOM_ASSIGNMENT: (
        SECTIONS, SCHEDULES,
        TEACHER_SCHEDULE, STUDENT_ASSIGNMENT,
    ),
    Mutation.SCHEDULE: (
        SCHEDULES, SECTIONS_WITH_LOAD, DASHBOARD_STATS,
        TEACHER_SCHEDULE, TEACHER_SECTIONS, TEACHER_STUDENTS, STUDENT_STUDY_LOAD,
    ),
    Mutation.STUDY_LOAD: (
        SECTIONS_WITH_LOAD, DASHBOARD_STATS, STUDENT_STUDY_LOAD,
    ),
}


# ---------- ttl ----------
def admin_ttl() -> int:
    return int(current_app.config.get("PORTAL_CACHE_TTL", 300))


def user_ttl() -> int:
    return int(current_app.config.get("PORTAL_USER_CACHE_TTL", 120))


# ---------- read-through ----------
_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(key: str) -> threading.Lock:
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


def remember(key: str, ttl: int, producer: Callable[[], Any]) -> Any:
    # stored as {"v": value} so a cached None is still a hit
    hit = cache.get(key)
    if hit is not None:
        return hit["v"]
    with _lock_for(key):
        hit = cache.get(key)
        if hit is not None:
            return hit["v"]
        value = producer()
        cache.set(key, {"v": value}, timeout=ttl)
        return value


def invalidate(keys: Iterable[str]) -> None:
    keys = sorted(set(keys))
    if not keys:
        return
    cache.delete_many(*keys)
    log.debug("cache invalidated", extra={"event": "cache_invalidate", "cache_keys": keys})


# ---------- dependency table ----------
def _fields(pattern: str) -> list[str]:
    return [name for _, name, _, _ in Formatter().parse(pattern) if name]


def _values(v) -> list:
    if isinstance(v, (list, tuple, set, frozenset)):
        return list(v)
    return [v]


def keys_for(mutation: Mutation, **params) -> set[str]:
    """Concrete keys for ``mutation``.

    ``teacher_id`` / ``user_id`` may be a scalar or a collection; ``None``
    skips the patterns that need it. ``{semester}`` expands to every tag plus
    ``all``.
    """
    keys: set[str] = set()
    for pattern in INVALIDATION_MAP[mutation]:
        names = _fields(pattern)
        choices = []
        for name in names:
            if name == "semester":
                choices.append(SEMESTER_KEYS)
                continue
            if name not in params:
                raise KeyError(f"{mutation.value}: missing parameter {name!r} for {pattern}")
            if params[name] is None:
                choices = None
                break
            choices.append(_values(params[name]))
        if choices is None:
            continue
        for combo in itertools.product(*choices):
            keys.add(pattern.format(**dict(zip(names, combo))))
    return keys


def invalidate_for(mutation: Mutation, **params) -> set[str]:
    keys = keys_for(mutation, **params)
    invalidate(keys)
    return keys
