from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classgrid.api.deps import get_app_settings, get_db
from classgrid.core.config import Settings
from classgrid.schemas.schedule import GenerateScheduleRequest, GenerateScheduleResponse
from classgrid.services.scheduling_service import generate_schedule

router = APIRouter()


@router.post("/schedule/generate", response_model=GenerateScheduleResponse)
def generate(
    payload: GenerateScheduleRequest | None = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> GenerateScheduleResponse:
    payload = payload or GenerateScheduleRequest()
    outcome = generate_schedule(
        db,
        settings=settings,
        course_ids=payload.course_ids,
        expected_revision=payload.expected_revision,
        actor=payload.actor,
    )
    return GenerateScheduleResponse.from_result(outcome.result, outcome.revision)
