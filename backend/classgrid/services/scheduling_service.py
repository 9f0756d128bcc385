from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from time import perf_counter
from typing import Any

from sqlalchemy.orm import Session

from classgrid.core.config import Settings
from classgrid.core.exceptions import ResourceNotFoundError, SlotValidationError
from classgrid.models.group import StudentGroup
from classgrid.models.room import Room
from classgrid.models.teacher import Teacher
from classgrid.services import schedule_store
from classgrid.services.allocator import AllocationResult, GreedyAllocator
from classgrid.services.audit import log_activity
from classgrid.services.conflict_detector import Conflict, ConflictDetector
from classgrid.services.manual_assignment import (
    ManualAssignmentValidator,
    ManualCheckResult,
    ManualCommitResult,
    parse_slot,
)
from classgrid.services.projection import GridCell, ProjectionView, project_schedule
from classgrid.services.schedule_state import Assignment
from classgrid.services.timeslots import SlotGrid

logger = logging.getLogger(__name__)

VIEW_ENTITIES = {"teacher": Teacher, "group": StudentGroup, "room": Room}


@dataclass
class GenerationOutcome:
    result: AllocationResult
    revision: int


@dataclass
class ManualCommitOutcome:
    result: ManualCommitResult
    revision: int


@dataclass
class VerificationOutcome:
    conflicts: list[Conflict]
    assignment_count: int


def generate_schedule(
    db: Session,
    *,
    settings: Settings,
    course_ids: Sequence[str] | None = None,
    expected_revision: int | None = None,
    actor: str | None = None,
) -> GenerationOutcome:
    """Clear and re-allocate the selected courses (all of them by default).

    Committed entries of courses outside the selection stay in place and constrain
    the run.
    """
    started = perf_counter()
    logger.info(
        "SCHEDULE GENERATION START | actor=%s | scope=%s | expected_revision=%s",
        actor,
        "all" if course_ids is None else len(course_ids),
        expected_revision,
    )
    with schedule_store.schedule_write_lock("generate", settings.schedule_lock_timeout_seconds):
        try:
            schedule_store.check_revision(db, expected_revision)
            all_courses = schedule_store.load_courses(db)
            courses = all_courses if course_ids is None else schedule_store.load_courses(db, course_ids)
            state = schedule_store.load_state(db, all_courses)
            state.remove_courses(course.id for course in courses)

            allocator = GreedyAllocator(
                grid=settings.slot_grid(),
                detector=ConflictDetector(schedule_store.load_availability(db)),
                max_evaluations=settings.allocator_max_evaluations,
            )
            result = allocator.allocate(courses, state)

            revision = schedule_store.replace_assignments(
                db,
                [course.id for course in courses],
                result.placed,
                actor=actor,
            )
            log_activity(
                db,
                actor=actor,
                action="schedule.generate",
                entity_type="schedule",
                entity_id=str(revision),
                details={
                    "scheduled_courses": result.scheduled_courses,
                    "total_courses": result.total_courses,
                    "scheduled_sessions": result.scheduled_sessions,
                    "total_sessions": result.total_sessions,
                    "unscheduled_sessions": len(result.unscheduled),
                },
            )
            schedule_store.commit_or_rollback(db, operation="schedule generation", context={"revision": revision})
        except Exception:
            db.rollback()
            logger.exception(
                "SCHEDULE GENERATION FAILED | actor=%s | wall_ms=%s",
                actor,
                int((perf_counter() - started) * 1000),
            )
            raise

    logger.info(
        "SCHEDULE GENERATION COMPLETE | actor=%s | courses=%s/%s | sessions=%s/%s | evaluations=%s | revision=%s | wall_ms=%s",
        actor,
        result.scheduled_courses,
        result.total_courses,
        result.scheduled_sessions,
        result.total_sessions,
        result.evaluations,
        revision,
        int((perf_counter() - started) * 1000),
    )
    return GenerationOutcome(result=result, revision=revision)


def _manual_validator(db: Session, settings: Settings) -> ManualAssignmentValidator:
    detector = ConflictDetector(schedule_store.load_availability(db))
    return ManualAssignmentValidator(grid=settings.slot_grid(), detector=detector)


def check_manual_conflicts(
    db: Session,
    *,
    settings: Settings,
    course_id: str,
    time_slots: Sequence[Any],
) -> ManualCheckResult:
    """Read-only preview of every conflict the proposed slots would cause."""
    course = schedule_store.get_course(db, course_id)
    validator = _manual_validator(db, settings)
    state = schedule_store.load_state(db)
    return validator.check(course, time_slots, state)


def commit_manual_schedule(
    db: Session,
    *,
    settings: Settings,
    course_id: str,
    time_slots: Sequence[Any],
    expected_revision: int | None = None,
    actor: str | None = None,
) -> ManualCommitOutcome:
    enforce = settings.manual_commit_policy == "validate"
    started = perf_counter()
    with schedule_store.schedule_write_lock("manual commit", settings.schedule_lock_timeout_seconds):
        try:
            revision = schedule_store.check_revision(db, expected_revision)
            course = schedule_store.get_course(db, course_id)
            validator = _manual_validator(db, settings)
            state = schedule_store.load_state(db)
            result = validator.commit(course, time_slots, state, enforce=enforce)
            if not result.committed:
                logger.info(
                    "MANUAL SCHEDULE REFUSED | actor=%s | course_id=%s | conflicts=%s",
                    actor,
                    course_id,
                    len(result.conflicts),
                )
                return ManualCommitOutcome(result=result, revision=revision)

            revision = schedule_store.replace_course_assignments(db, course.id, result.assignments, actor=actor)
            log_activity(
                db,
                actor=actor,
                action="schedule.manual_commit",
                entity_type="course",
                entity_id=course.id,
                details={
                    "slots": [str(item.slot) for item in result.assignments],
                    "replaced": len(result.replaced),
                    "policy": settings.manual_commit_policy,
                },
            )
            schedule_store.commit_or_rollback(
                db,
                operation="manual schedule commit",
                context={"course_id": course.id, "revision": revision},
            )
        except Exception:
            db.rollback()
            logger.exception(
                "MANUAL SCHEDULE COMMIT FAILED | actor=%s | course_id=%s | wall_ms=%s",
                actor,
                course_id,
                int((perf_counter() - started) * 1000),
            )
            raise

    logger.info(
        "MANUAL SCHEDULE COMMITTED | actor=%s | course_id=%s | entries=%s | replaced=%s | revision=%s",
        actor,
        course.id,
        len(result.assignments),
        len(result.replaced),
        revision,
    )
    return ManualCommitOutcome(result=result, revision=revision)


def _proposed_assignments(db: Session, proposed: Sequence[Mapping[str, Any]], grid: SlotGrid) -> list[Assignment]:
    courses = {course.id: course for course in schedule_store.load_courses(db)}
    assignments: list[Assignment] = []
    for index, item in enumerate(proposed):
        course_id = item.get("course_id") or item.get("courseId")
        if not course_id:
            raise SlotValidationError("Every proposed assignment needs a course id", field="courseId", index=index)
        course = courses.get(course_id)
        if course is None:
            raise ResourceNotFoundError("Course", course_id)
        assignments.append(Assignment(course=course, slot=parse_slot(item, grid, index=index)))
    return assignments


def verify_schedule(
    db: Session,
    proposed: Sequence[Mapping[str, Any]] | None = None,
    *,
    settings: Settings,
) -> VerificationOutcome:
    """Check a full assignment set; the committed schedule when nothing is proposed.

    Proposed slots must lie on the working grid. Committed entries are audited as stored.
    """
    detector = ConflictDetector(schedule_store.load_availability(db))
    assignments = list(schedule_store.load_state(db)) if proposed is None else _proposed_assignments(db, proposed, settings.slot_grid())
    conflicts = detector.audit(assignments, teacher_skills=schedule_store.load_teacher_skills(db))
    return VerificationOutcome(conflicts=conflicts, assignment_count=len(assignments))


def project(
    db: Session,
    *,
    settings: Settings,
    view: ProjectionView,
    entity_id: str | None = None,
) -> list[GridCell]:
    entity = VIEW_ENTITIES.get(view)
    if entity is not None and entity_id and db.get(entity, entity_id) is None:
        raise ResourceNotFoundError(view.capitalize(), entity_id)
    return project_schedule(schedule_store.load_state(db), settings.slot_grid(), view=view, entity_id=entity_id)
