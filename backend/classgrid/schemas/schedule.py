from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from classgrid.services.allocator import AllocationResult
from classgrid.services.conflict_detector import Conflict
from classgrid.services.projection import GridCell
from classgrid.services.schedule_state import CourseRef


class ProposedSlotIn(BaseModel):
    # Checked by ManualAssignmentValidator, which reports the failing field and index.
    day: str | int | None = None
    time: str | None = None
    duration: int | None = Field(default=None, ge=1, le=24 * 60)


class ManualScheduleRequest(BaseModel):
    course_id: str = Field(alias="courseId", min_length=1, max_length=36)
    time_slots: list[ProposedSlotIn] = Field(alias="timeSlots", max_length=7 * 24)
    expected_revision: int | None = Field(default=None, alias="expectedRevision", ge=0)

    model_config = {"populate_by_name": True}


class GenerateScheduleRequest(BaseModel):
    course_ids: list[str] | None = Field(default=None, alias="courseIds", max_length=5000)
    expected_revision: int | None = Field(default=None, alias="expectedRevision", ge=0)
    actor: str | None = Field(default=None, max_length=100)

    model_config = {"populate_by_name": True}


class ProposedAssignmentIn(BaseModel):
    course_id: str = Field(alias="courseId", min_length=1, max_length=36)
    day: str | int | None = None
    time: str | None = None
    duration: int | None = Field(default=None, ge=1, le=24 * 60)

    model_config = {"populate_by_name": True}


class VerifyScheduleRequest(BaseModel):
    assignments: list[ProposedAssignmentIn] | None = None


class CourseSummary(BaseModel):
    id: str
    name: str
    subject_name: str = Field(serialization_alias="subjectName")
    teacher_name: str = Field(serialization_alias="teacherName")
    group_name: str = Field(serialization_alias="groupName")
    room_name: str | None = Field(default=None, serialization_alias="roomName")
    teacher_id: str = Field(serialization_alias="teacherId")
    group_id: str = Field(serialization_alias="groupId")
    room_id: str | None = Field(default=None, serialization_alias="roomId")

    @classmethod
    def from_ref(cls, course: CourseRef) -> "CourseSummary":
        return cls(
            id=course.id,
            name=course.name,
            subject_name=course.subject_name,
            teacher_name=course.teacher_name,
            group_name=course.group_name,
            room_name=course.room_name,
            teacher_id=course.teacher_id,
            group_id=course.group_id,
            room_id=course.room_id,
        )


class ConflictOut(BaseModel):
    type: Literal["teacher", "room", "group"]
    reason: Literal["double_booking", "unavailable", "skill_mismatch"]
    message: str
    day: str
    time: str
    course_name: str = Field(serialization_alias="courseName")
    conflicting_course_name: str | None = Field(default=None, serialization_alias="conflictingCourseName")

    @classmethod
    def from_conflict(cls, conflict: Conflict) -> "ConflictOut":
        return cls(
            type=conflict.type,
            reason=conflict.reason,
            message=conflict.message,
            day=conflict.slot.day_name,
            time=conflict.slot.time_label,
            course_name=conflict.course.name,
            conflicting_course_name=conflict.conflicting_course_name,
        )


class ConflictCheckResponse(BaseModel):
    conflicts: list[ConflictOut]
    conflict_count: int = Field(serialization_alias="conflictCount")

    @classmethod
    def from_conflicts(cls, conflicts: list[Conflict]) -> "ConflictCheckResponse":
        return cls(
            conflicts=[ConflictOut.from_conflict(item) for item in conflicts],
            conflict_count=len(conflicts),
        )


class ManualScheduleResponse(BaseModel):
    message: str
    committed: bool
    schedule_count: int = Field(serialization_alias="scheduleCount")
    revision: int
    conflicts: list[ConflictOut] = Field(default_factory=list)


class UnscheduledSessionOut(BaseModel):
    course_id: str = Field(serialization_alias="courseId")
    course_name: str = Field(serialization_alias="courseName")
    session_number: int = Field(serialization_alias="sessionNumber")
    reason: Literal["no_feasible_slot", "evaluation_cap"]


class GenerateScheduleResponse(BaseModel):
    message: str
    scheduled_courses: int = Field(serialization_alias="scheduledCourses")
    total_courses: int = Field(serialization_alias="totalCourses")
    scheduled_sessions: int = Field(serialization_alias="scheduledSessions")
    total_sessions: int = Field(serialization_alias="totalSessions")
    unscheduled_sessions: list[UnscheduledSessionOut] = Field(serialization_alias="unscheduledSessions")
    revision: int

    @classmethod
    def from_result(cls, result: AllocationResult, revision: int) -> "GenerateScheduleResponse":
        if result.unscheduled:
            message = f"Schedule generated with {len(result.unscheduled)} unscheduled session(s)"
        else:
            message = "Schedule generated successfully"
        return cls(
            message=message,
            scheduled_courses=result.scheduled_courses,
            total_courses=result.total_courses,
            scheduled_sessions=result.scheduled_sessions,
            total_sessions=result.total_sessions,
            unscheduled_sessions=[
                UnscheduledSessionOut(
                    course_id=item.course.id,
                    course_name=item.course.name,
                    session_number=item.session_number,
                    reason=item.reason,
                )
                for item in result.unscheduled
            ],
            revision=revision,
        )


class GridCellOut(BaseModel):
    day: str
    time: str
    course: CourseSummary | None = None
    courses: list[CourseSummary] = Field(default_factory=list)

    @classmethod
    def from_cell(cls, cell: GridCell) -> "GridCellOut":
        summaries = [CourseSummary.from_ref(course) for course in cell.courses]
        return cls(day=cell.day, time=cell.time, course=summaries[0] if summaries else None, courses=summaries)


class ScheduleEntryOut(BaseModel):
    id: str
    course_id: str = Field(serialization_alias="courseId")
    day: str
    time: str
    duration_minutes: int = Field(serialization_alias="durationMinutes")
    subject_id: str | None = Field(default=None, serialization_alias="subjectId")
    teacher_id: str = Field(serialization_alias="teacherId")
    group_id: str = Field(serialization_alias="groupId")
    room_id: str | None = Field(default=None, serialization_alias="roomId")

    model_config = {"from_attributes": True}


class VerifyScheduleResponse(ConflictCheckResponse):
    valid: bool
    assignment_count: int = Field(serialization_alias="assignmentCount")
