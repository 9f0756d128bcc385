"""Seed a small demo institution for ClassGrid.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py

Re-running updates the existing rows in place; committed schedule entries are left alone.
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from classgrid.db.bootstrap import ensure_schema
from classgrid.db.session import SessionLocal, engine
from classgrid.models.course import Course
from classgrid.models.group import StudentGroup
from classgrid.models.room import Room
from classgrid.models.subject import Subject
from classgrid.models.teacher import Teacher

CREATE_SCHEMA = os.getenv("SEED_CREATE_SCHEMA", "true").strip().lower() in {"1", "true", "yes", "on"}

SUBJECTS = [
    ("MATH101", "Mathematics"),
    ("PHYS101", "Physics"),
    ("CHEM101", "Chemistry"),
    ("CS101", "Introduction to Programming"),
]

TEACHERS = [
    {
        "email": "teacher@test.com",
        "name": "Teacher User",
        "skills": ["MATH101"],
        "unavailable_times": [],
    },
    {
        "email": "a.curie@test.com",
        "name": "Dr. Ada Curie",
        "skills": ["PHYS101", "CHEM101"],
        "unavailable_times": ["Monday-08:00-09:00", "Monday-09:00-10:00"],
    },
    {
        "email": "g.hopper@test.com",
        "name": "Prof. Grace Hopper",
        "skills": ["CS101", "MATH101"],
        "unavailable_times": [{"day": "Friday", "time": "14:00-18:00"}],
    },
]

ROOMS = [
    ("Room A101", 30, []),
    ("Room B202", 25, []),
    ("Lab C1", 20, [{"day": "Wednesday", "time": "08:00-10:00"}]),
]

GROUPS = [
    ("Group A", 25, []),
    ("Group B", 22, [{"day": "Thursday", "time": "16:00-18:00"}]),
]

# (name, subject code, teacher email, group, room or None, weekly sessions)
COURSES = [
    ("Mathematics for Group A", "MATH101", "teacher@test.com", "Group A", "Room A101", 3),
    ("Physics for Group A", "PHYS101", "a.curie@test.com", "Group A", "Room B202", 2),
    ("Chemistry for Group A", "CHEM101", "a.curie@test.com", "Group A", "Lab C1", 2),
    ("Mathematics for Group B", "MATH101", "g.hopper@test.com", "Group B", "Room A101", 3),
    ("Programming for Group B", "CS101", "g.hopper@test.com", "Group B", "Lab C1", 2),
    ("Physics tutorial for Group B", "PHYS101", "a.curie@test.com", "Group B", None, 1),
]


def upsert_subjects(session) -> dict[str, Subject]:
    by_code: dict[str, Subject] = {}
    for code, name in SUBJECTS:
        subject = session.execute(select(Subject).where(Subject.code == code)).scalar_one_or_none()
        if subject is None:
            subject = Subject(code=code, name=name)
            session.add(subject)
        else:
            subject.name = name
        by_code[code] = subject
    session.flush()
    return by_code


def upsert_teachers(session, subjects: dict[str, Subject]) -> dict[str, Teacher]:
    by_email: dict[str, Teacher] = {}
    for profile in TEACHERS:
        teacher = session.execute(select(Teacher).where(Teacher.email == profile["email"])).scalar_one_or_none()
        skills = [subjects[code].id for code in profile["skills"]]
        if teacher is None:
            teacher = Teacher(email=profile["email"], name=profile["name"])
            session.add(teacher)
        teacher.name = profile["name"]
        teacher.skills = skills
        teacher.unavailable_times = profile["unavailable_times"]
        by_email[profile["email"]] = teacher
    session.flush()
    return by_email


def upsert_named(session, model, rows, size_field: str) -> dict[str, object]:
    by_name: dict[str, object] = {}
    for name, size, unavailable_times in rows:
        record = session.execute(select(model).where(model.name == name)).scalar_one_or_none()
        if record is None:
            record = model(name=name)
            session.add(record)
        setattr(record, size_field, size)
        record.unavailable_times = unavailable_times
        by_name[name] = record
    session.flush()
    return by_name


def upsert_courses(session, subjects, teachers, groups, rooms) -> None:
    for name, subject_code, teacher_email, group_name, room_name, weekly_sessions in COURSES:
        course = session.execute(select(Course).where(Course.name == name)).unique().scalar_one_or_none()
        if course is None:
            course = Course(name=name)
            session.add(course)
        course.subject_id = subjects[subject_code].id
        course.teacher_id = teachers[teacher_email].id
        course.group_id = groups[group_name].id
        course.room_id = rooms[room_name].id if room_name else None
        course.weekly_sessions = weekly_sessions


def main() -> None:
    if CREATE_SCHEMA:
        ensure_schema(engine)
    with SessionLocal() as session:
        subjects = upsert_subjects(session)
        teachers = upsert_teachers(session, subjects)
        rooms = upsert_named(session, Room, ROOMS, "capacity")
        groups = upsert_named(session, StudentGroup, GROUPS, "size")
        upsert_courses(session, subjects, teachers, groups, rooms)
        session.commit()

        course_count = session.execute(select(func.count(Course.id))).scalar_one()
        session_total = session.execute(select(func.sum(Course.weekly_sessions))).scalar_one()
        teacher_count = session.execute(select(func.count(Teacher.id))).scalar_one()

    print("Demo data seeded successfully.")
    print("")
    print(f"Subjects: {len(SUBJECTS)}")
    print(f"Teachers: {teacher_count}")
    print(f"Rooms: {len(ROOMS)}  Groups: {len(GROUPS)}")
    print(f"Courses: {course_count} ({session_total} weekly sessions)")
    print("")
    print("Generate a timetable with: curl -X POST http://localhost:8000/api/schedule/generate")


if __name__ == "__main__":
    main()
