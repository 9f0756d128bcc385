from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classgrid.api.deps import get_app_settings, get_db
from classgrid.core.config import Settings
from classgrid.schemas.schedule import (
    ConflictCheckResponse,
    ConflictOut,
    ManualScheduleRequest,
    VerifyScheduleRequest,
    VerifyScheduleResponse,
)
from classgrid.services.scheduling_service import check_manual_conflicts, verify_schedule

router = APIRouter()


@router.post("/schedules/conflicts", response_model=ConflictCheckResponse)
def check_conflicts(
    payload: ManualScheduleRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ConflictCheckResponse:
    result = check_manual_conflicts(
        db,
        settings=settings,
        course_id=payload.course_id,
        time_slots=[slot.model_dump() for slot in payload.time_slots],
    )
    return ConflictCheckResponse.from_conflicts(result.conflicts)


@router.post("/schedules/verify", response_model=VerifyScheduleResponse)
def verify(
    payload: VerifyScheduleRequest | None = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> VerifyScheduleResponse:
    proposed = None
    if payload is not None and payload.assignments is not None:
        proposed = [item.model_dump() for item in payload.assignments]
    outcome = verify_schedule(db, proposed, settings=settings)
    return VerifyScheduleResponse(
        conflicts=[ConflictOut.from_conflict(item) for item in outcome.conflicts],
        conflict_count=len(outcome.conflicts),
        valid=not outcome.conflicts,
        assignment_count=outcome.assignment_count,
    )
