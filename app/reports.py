"""Dashboard, report and schedule reductions over display items."""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from typing import Any, Dict, Iterable, List

import anyio

from registrar.field_adapter import to_display
from registrar.schemas import COURSE, ENROLLMENT, GRADE, STUDENT, WEEKDAYS

from app.gateway import RecordGateway

logger = logging.getLogger("registrar.reports")

REPORT_SCHEMAS = {
    "students": STUDENT,
    "courses": COURSE,
    "grades": GRADE,
    "enrollments": ENROLLMENT,
}
TIME_SLOTS = [
    "8:00 AM - 9:00 AM",
    "9:00 AM - 10:00 AM",
    "10:00 AM - 11:00 AM",
    "11:00 AM - 12:00 PM",
    "12:00 PM - 1:00 PM",
    "1:00 PM - 2:00 PM",
    "2:00 PM - 3:00 PM",
    "3:00 PM - 4:00 PM",
    "4:00 PM - 5:00 PM",
]
_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])?$")


def _number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


async def load_report_data(gateway: RecordGateway) -> Dict[str, List[dict]]:
    """Fetch students, courses, grades and enrollments concurrently as display items."""
    data: Dict[str, List[dict]] = {}
    failures: List[BaseException] = []

    async def _load(key: str) -> None:
        schema = REPORT_SCHEMAS[key]
        try:
            records = await gateway.list(schema.table, fields=schema.projection())
        except Exception as exc:
            failures.append(exc)
            return
        data[key] = [to_display(schema, r) for r in records]

    async with anyio.create_task_group() as tg:
        for key in REPORT_SCHEMAS:
            tg.start_soon(_load, key)
    if failures:
        logger.error("report_load_failed errors=%s", len(failures))
        raise failures[0]
    return {key: data[key] for key in REPORT_SCHEMAS}


def _average_gpa(students: List[dict]) -> str:
    if not students:
        return "0.00"
    return f"{sum(_number(s.get('gpa')) for s in students) / len(students):.2f}"


def _active(students: Iterable[dict]) -> int:
    return sum(1 for s in students if s.get("status") == "Active")


def summarize(data: Dict[str, List[dict]]) -> dict:
    students = data.get("students") or []
    courses = data.get("courses") or []
    grades = data.get("grades") or []

    year_distribution = Counter(s.get("year") for s in students)
    grade_distribution = Counter(str(g.get("grade") or "")[:1] for g in grades if g.get("grade"))
    department_enrollment: Dict[str, int] = {}
    for course in courses:
        dept = course.get("department")
        department_enrollment[dept] = department_enrollment.get(dept, 0) + int(_number(course.get("enrolled")))

    total_capacity = sum(_number(c.get("capacity")) for c in courses)
    total_enrolled = sum(_number(c.get("enrolled")) for c in courses)
    rate = f"{total_enrolled / total_capacity * 100:.1f}" if total_capacity > 0 else "0.0"

    return {
        "yearDistribution": dict(year_distribution),
        "gradeDistribution": dict(grade_distribution),
        "departmentEnrollment": department_enrollment,
        "averageGPA": _average_gpa(students),
        "enrollmentRate": rate,
        "totalStudents": len(students),
        "totalCourses": len(courses),
        "activeStudents": _active(students),
    }


def dashboard_stats(data: Dict[str, List[dict]]) -> dict:
    students = data.get("students") or []
    enrollments = data.get("enrollments") or []
    return {
        "totalStudents": len(students),
        "activeStudents": _active(students),
        "coursesOffered": len(data.get("courses") or []),
        "totalEnrolled": sum(1 for e in enrollments if e.get("status") == "Enrolled"),
        "averageGPA": _average_gpa(students),
    }


def _start_minutes(value: Any) -> tuple:
    text = str(value or "").split("-", 1)[0].strip()
    match = _CLOCK_RE.match(text)
    if not match:
        return (1, 0, text)
    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), (match.group(3) or "").upper()
    if meridiem == "PM" and hour != 12:
        hour += 12
    elif meridiem == "AM" and hour == 12:
        hour = 0
    return (0, hour * 60 + minute, text)


def courses_for_day(courses: Iterable[dict], day: str = "all") -> List[dict]:
    """Courses meeting on ``day`` (or every course for ``"all"``), ordered by time."""
    if day != "all" and day not in WEEKDAYS:
        raise ValueError(f"Unknown day: {day}")
    picked = [c for c in courses if day == "all" or day in (c.get("days") or [])]
    return sorted(picked, key=lambda c: _start_minutes(c.get("time")))


def courses_for_slot(courses: Iterable[dict], day: str, slot: str) -> List[dict]:
    return [c for c in courses if day in (c.get("days") or []) and c.get("time") == slot]


def format_file_size(size: Any) -> str:
    size = _number(size)
    if size <= 0:
        return "0 Bytes"
    index = 0
    while size >= 1024 and index < len(_SIZE_UNITS) - 1:
        size /= 1024
        index += 1
    text = f"{size:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"
