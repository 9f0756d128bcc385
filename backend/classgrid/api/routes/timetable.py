from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from classgrid.api.deps import get_app_settings, get_db
from classgrid.core.config import Settings
from classgrid.core.exceptions import ResourceNotFoundError, SchedulerError
from classgrid.models.course import Course
from classgrid.schemas.schedule import GridCellOut, ScheduleEntryOut
from classgrid.services import schedule_store
from classgrid.services.projection import PROJECTION_VIEWS
from classgrid.services.scheduling_service import project

router = APIRouter()


@router.get("/schedule/{view}", response_model=list[GridCellOut])
def schedule_view(
    view: str,
    entity_id: str | None = Query(default=None, alias="id"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> list[GridCellOut]:
    if view not in PROJECTION_VIEWS:
        raise SchedulerError("Invalid schedule type", details={"view": view})
    if view != "all" and not entity_id:
        raise SchedulerError(f"{view.capitalize()} ID is required", details={"view": view})
    cells = project(db, settings=settings, view=view, entity_id=entity_id)
    return [GridCellOut.from_cell(cell) for cell in cells]


@router.get("/schedules", response_model=list[ScheduleEntryOut])
def list_schedules(db: Session = Depends(get_db)) -> list[ScheduleEntryOut]:
    return schedule_store.list_entries(db)


@router.get("/schedules/existing", response_model=list[ScheduleEntryOut])
def existing_schedules(
    course_id: str = Query(alias="courseId", min_length=1),
    db: Session = Depends(get_db),
) -> list[ScheduleEntryOut]:
    if db.get(Course, course_id) is None:
        raise ResourceNotFoundError("Course", course_id)
    return schedule_store.list_entries(db, course_id)
