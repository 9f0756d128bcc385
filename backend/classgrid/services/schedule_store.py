"""
Bridge between the persisted entities and the in-memory scheduling types.

All writes to ``schedule_entries`` go through this module. Each write replaces whole
course schedules, bumps the single schedule revision row and is committed or rolled
back as one transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from threading import Lock

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classgrid.core.exceptions import (
    ResourceNotFoundError,
    ScheduleBusyError,
    ScheduleRevisionConflictError,
    ScheduleStoreError,
    SchedulerError,
)
from classgrid.models.course import Course
from classgrid.models.group import StudentGroup
from classgrid.models.room import Room
from classgrid.models.schedule import ScheduleEntry, ScheduleRevision
from classgrid.models.teacher import Teacher
from classgrid.services.availability import AvailabilityModel, EntityKind, parse_windows
from classgrid.services.schedule_state import Assignment, CourseRef, ScheduleState
from classgrid.services.timeslots import TimeSlot

logger = logging.getLogger(__name__)

_write_lock = Lock()


@contextmanager
def schedule_write_lock(operation: str, timeout_seconds: float) -> Iterator[None]:
    """Hold the single-writer lock of the schedule for the duration of ``operation``."""
    if not _write_lock.acquire(timeout=max(0.0, timeout_seconds)):
        logger.warning("SCHEDULE LOCK BUSY | operation=%s | timeout_s=%s", operation, timeout_seconds)
        raise ScheduleBusyError(operation, timeout_seconds)
    try:
        yield
    finally:
        _write_lock.release()


def course_ref(course: Course) -> CourseRef:
    return CourseRef(
        id=course.id,
        name=course.name,
        teacher_id=course.teacher_id,
        group_id=course.group_id,
        weekly_sessions=course.weekly_sessions,
        room_id=course.room_id,
        subject_id=course.subject_id,
        subject_name=course.subject.name if course.subject is not None else "",
        teacher_name=course.teacher.name if course.teacher is not None else "",
        group_name=course.group.name if course.group is not None else "",
        room_name=course.room.name if course.room is not None else None,
    )


def _to_ref(course: Course) -> CourseRef:
    try:
        return course_ref(course)
    except ValueError as exc:
        raise SchedulerError(str(exc), details={"course_id": course.id}) from exc


def load_courses(db: Session, course_ids: Sequence[str] | None = None) -> list[CourseRef]:
    query = select(Course).order_by(Course.name, Course.id)
    if course_ids is not None:
        wanted = list(dict.fromkeys(course_ids))
        if not wanted:
            return []
        query = query.where(Course.id.in_(wanted))
        courses = list(db.execute(query).unique().scalars())
        found = {course.id for course in courses}
        for course_id in wanted:
            if course_id not in found:
                raise ResourceNotFoundError("Course", course_id)
        return [_to_ref(course) for course in courses]
    return [_to_ref(course) for course in db.execute(query).unique().scalars()]


def get_course(db: Session, course_id: str) -> CourseRef:
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    return _to_ref(course)


def load_availability(db: Session) -> AvailabilityModel:
    model = AvailabilityModel()
    sources: list[tuple[EntityKind, type]] = [("teacher", Teacher), ("room", Room), ("group", StudentGroup)]
    for kind, entity in sources:
        for record in db.execute(select(entity)).scalars():
            try:
                windows = parse_windows(record.unavailable_times)
            except ValueError as exc:
                raise SchedulerError(
                    f"Invalid unavailable time on {kind} {record.name}: {exc}",
                    details={"entity_type": kind, "entity_id": record.id},
                ) from exc
            model.register(kind, record.id, windows)
    return model


def load_teacher_skills(db: Session) -> dict[str, list[str]]:
    return {teacher.id: list(teacher.skills or []) for teacher in db.execute(select(Teacher)).scalars()}


def entry_slot(entry: ScheduleEntry) -> TimeSlot:
    try:
        return TimeSlot.from_labels(entry.day, entry.time, entry.duration_minutes)
    except ValueError as exc:
        raise SchedulerError(
            f"Stored schedule entry has an invalid slot: {exc}",
            details={"entry_id": entry.id, "course_id": entry.course_id, "day": entry.day, "time": entry.time},
        ) from exc


def load_state(db: Session, courses: Iterable[CourseRef] | None = None) -> ScheduleState:
    """Rebuild the committed schedule, resolving every entry against its course's current resources."""
    by_id = {course.id: course for course in (courses if courses is not None else load_courses(db))}
    state = ScheduleState()
    for entry in db.execute(select(ScheduleEntry).order_by(ScheduleEntry.day, ScheduleEntry.time)).scalars():
        course = by_id.get(entry.course_id)
        if course is None:
            logger.warning("ORPHAN SCHEDULE ENTRY | entry_id=%s | course_id=%s", entry.id, entry.course_id)
            continue
        state.add(Assignment(course=course, slot=entry_slot(entry)))
    return state


def list_entries(db: Session, course_id: str | None = None) -> list[ScheduleEntry]:
    query = select(ScheduleEntry)
    if course_id is not None:
        query = query.where(ScheduleEntry.course_id == course_id)
    entries = list(db.execute(query).scalars())
    # Weekday order, not alphabetical.
    return sorted(entries, key=lambda entry: (_day_sort_key(entry.day), entry.time, entry.course_id))


def _day_sort_key(day: str) -> int:
    try:
        return TimeSlot.from_labels(day, "00:00-01:00").day
    except ValueError:
        return 7


def current_revision(db: Session) -> int:
    record = db.get(ScheduleRevision, 1)
    return 0 if record is None else record.revision


def check_revision(db: Session, expected: int | None) -> int:
    actual = current_revision(db)
    if expected is not None and expected != actual:
        raise ScheduleRevisionConflictError(expected=expected, actual=actual)
    return actual


def _bump_revision(db: Session, actor: str | None) -> int:
    record = db.execute(select(ScheduleRevision).where(ScheduleRevision.id == 1).with_for_update()).scalar_one_or_none()
    if record is None:
        record = ScheduleRevision(id=1, revision=0)
        db.add(record)
    record.revision += 1
    record.updated_by = actor
    return record.revision


def _entry(assignment: Assignment) -> ScheduleEntry:
    course = assignment.course
    return ScheduleEntry(
        course_id=course.id,
        day=assignment.slot.day_name,
        time=assignment.slot.time_label,
        duration_minutes=assignment.slot.duration_minutes,
        subject_id=course.subject_id,
        teacher_id=course.teacher_id,
        group_id=course.group_id,
        room_id=course.room_id,
    )


def replace_assignments(
    db: Session,
    course_ids: Iterable[str],
    assignments: Iterable[Assignment],
    *,
    actor: str | None = None,
) -> int:
    """Stage deletion of every entry of ``course_ids`` plus insertion of ``assignments``.

    Nothing is committed here; call :func:`commit_or_rollback` once the rest of the
    operation's rows are staged.
    """
    scope = set(course_ids)
    incoming = list(assignments)
    outside = sorted({item.course.id for item in incoming} - scope)
    if outside:
        raise SchedulerError(
            "Assignments reference courses outside the replaced set",
            details={"course_ids": outside},
        )
    try:
        if scope:
            db.execute(delete(ScheduleEntry).where(ScheduleEntry.course_id.in_(sorted(scope))))
        db.add_all(_entry(item) for item in incoming)
        revision = _bump_revision(db, actor)
        db.flush()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("SCHEDULE WRITE FAILED | courses=%s | entries=%s", len(scope), len(incoming))
        raise ScheduleStoreError(
            "Failed to write schedule entries",
            details={"course_ids": sorted(scope), "entries": len(incoming)},
        ) from exc
    return revision


def replace_course_assignments(
    db: Session,
    course_id: str,
    assignments: Iterable[Assignment],
    *,
    actor: str | None = None,
) -> int:
    return replace_assignments(db, [course_id], assignments, actor=actor)


def commit_or_rollback(db: Session, *, operation: str, context: dict | None = None) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("SCHEDULE COMMIT FAILED | operation=%s | context=%s", operation, context)
        raise ScheduleStoreError(f"Failed to commit {operation}", details=context or {}) from exc
