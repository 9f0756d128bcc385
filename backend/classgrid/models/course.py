import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from classgrid.db.base import Base
from classgrid.models.group import StudentGroup
from classgrid.models.room import Room
from classgrid.models.subject import Subject
from classgrid.models.teacher import Teacher


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (CheckConstraint("weekly_sessions >= 1", name="ck_courses_weekly_sessions_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    subject_id: Mapped[str] = mapped_column(ForeignKey("subjects.id"), nullable=False, index=True)
    teacher_id: Mapped[str] = mapped_column(ForeignKey("teachers.id"), nullable=False, index=True)
    group_id: Mapped[str] = mapped_column(ForeignKey("student_groups.id"), nullable=False, index=True)
    room_id: Mapped[str | None] = mapped_column(ForeignKey("rooms.id"), nullable=True, index=True)
    weekly_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    subject: Mapped[Subject] = relationship(lazy="joined")
    teacher: Mapped[Teacher] = relationship(lazy="joined")
    group: Mapped[StudentGroup] = relationship(lazy="joined")
    room: Mapped[Room | None] = relationship(lazy="joined")
