from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from classgrid.api.deps import get_app_settings, get_db
from classgrid.core.config import Settings
from classgrid.schemas.schedule import ConflictOut, ManualScheduleRequest, ManualScheduleResponse
from classgrid.services.scheduling_service import commit_manual_schedule

router = APIRouter()


@router.post(
    "/schedules/manual",
    response_model=ManualScheduleResponse,
    responses={409: {"model": ManualScheduleResponse}},
)
def create_manual_schedule(
    payload: ManualScheduleRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    outcome = commit_manual_schedule(
        db,
        settings=settings,
        course_id=payload.course_id,
        time_slots=[slot.model_dump() for slot in payload.time_slots],
        expected_revision=payload.expected_revision,
    )
    result = outcome.result
    if not result.committed:
        body = ManualScheduleResponse(
            message="Schedule not saved: the proposed slots conflict with the existing schedule",
            committed=False,
            schedule_count=0,
            revision=outcome.revision,
            conflicts=[ConflictOut.from_conflict(item) for item in result.conflicts],
        )
        return JSONResponse(status_code=409, content=body.model_dump(mode="json", by_alias=True))
    return ManualScheduleResponse(
        message="Schedule created successfully",
        committed=True,
        schedule_count=len(result.assignments),
        revision=outcome.revision,
    )
