"""Entity field tables for the college record store."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping

from .field_adapter import BOOL, DECIMAL, INT, SET, EntitySchema, FieldSpec, number_text


STUDENT_YEARS = ["Freshman", "Sophomore", "Junior", "Senior", "Graduate"]
STUDENT_STATUSES = ["Active", "Inactive"]
SEMESTERS = ["Spring", "Summer", "Fall"]
WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
DIFFICULTIES = ["Beginner", "Intermediate", "Advanced"]
ENROLLMENT_STATUSES = ["Enrolled", "Completed", "Dropped", "Withdrawn"]
DOCUMENT_CATEGORIES = ["Transcript", "Certificate", "Report Card", "Diploma", "Letter", "Other"]
DOCUMENT_STATUSES = ["Active", "Archived", "Pending"]

GRADE_POINTS: Dict[str, float] = {
    "A+": 4.0, "A": 4.0, "A-": 3.7,
    "B+": 3.3, "B": 3.0, "B-": 2.7,
    "C+": 2.3, "C": 2.0, "C-": 1.7,
    "D+": 1.3, "D": 1.0, "D-": 0.7,
    "F": 0.0,
}
GRADE_LETTERS = list(GRADE_POINTS)


def current_semester(today: date) -> str:
    if today.month <= 5:
        return "Spring"
    if today.month <= 7:
        return "Summer"
    return "Fall"


def _text(values: Mapping[str, Any], key: str) -> str:
    value = values.get(key)
    return "" if value is None else str(value).strip()


def _points_for(letter: Any) -> Dict[str, Any]:
    points = GRADE_POINTS.get(str(letter or "").strip())
    return {"points": number_text(points) if points is not None else ""}


STUDENT = EntitySchema(
    entity="student",
    table="student_c",
    fields=(
        FieldSpec("firstName", "first_name_c", required=True),
        FieldSpec("lastName", "last_name_c", required=True),
        FieldSpec("email", "email_c", required=True),
        FieldSpec("phone", "phone_c"),
        FieldSpec("studentId", "student_id_c", required=True),
        FieldSpec("enrollmentDate", "enrollment_date_c"),
        FieldSpec("major", "major_c", required=True),
        FieldSpec("year", "year_c", required=True),
        FieldSpec("status", "status_c", default="Active"),
        FieldSpec("gpa", "gpa_c", DECIMAL, default=0.0),
        FieldSpec("gender", "gender_c"),
        FieldSpec("rating", "rating_c", INT, default=0),
        FieldSpec("amountPaid", "amount_paid_c", DECIMAL, default=0.0),
        FieldSpec("hobbies", "hobbies_c", SET),
    ),
    search_fields=("firstName", "lastName", "email", "studentId", "major", "gender", "hobbies"),
    unique=("studentId",),
    label=lambda d: f"{_text(d, 'firstName')} {_text(d, 'lastName')}".strip(),
    defaults=lambda today: {"status": "Active", "enrollmentDate": today.isoformat()},
)

COURSE = EntitySchema(
    entity="course",
    table="course_c",
    fields=(
        FieldSpec("courseCode", "course_code_c", required=True),
        FieldSpec("title", "title_c", required=True),
        FieldSpec("credits", "credits_c", INT, required=True),
        FieldSpec("department", "department_c", required=True),
        FieldSpec("semester", "semester_c", default="Spring"),
        FieldSpec("year", "year_c", INT, required=True),
        FieldSpec("capacity", "capacity_c", INT, required=True),
        FieldSpec("enrolled", "enrolled_c", INT, default=0),
        FieldSpec("days", "days_c", SET, legacy=("schedule.days",)),
        FieldSpec("time", "time_c", legacy=("schedule.time",)),
        FieldSpec("instructor", "instructor_c", required=True),
        FieldSpec("room", "room_c"),
        FieldSpec("phone", "phone_c"),
        FieldSpec("email", "email_c"),
        FieldSpec("website", "website_c"),
        FieldSpec("amount", "amount_c", DECIMAL),
        FieldSpec("specializations", "specializations_c", SET),
        FieldSpec("topics", "topics_c", SET),
        FieldSpec("deliveryMethods", "delivery_methods_c", SET),
        FieldSpec("difficulty", "difficulty_c"),
        FieldSpec("experienceLevel", "experience_level_c"),
        FieldSpec("isActive", "is_active_c", BOOL, default=True),
    ),
    search_fields=("title", "courseCode", "department", "instructor", "phone", "email", "website"),
    unique=("courseCode",),
    label=lambda d: _text(d, "title") or "Course",
    defaults=lambda today: {
        "semester": current_semester(today),
        "year": str(today.year),
        "enrolled": "0",
        "isActive": True,
    },
)

GRADE = EntitySchema(
    entity="grade",
    table="grade_c",
    fields=(
        FieldSpec("studentId", "student_id_c", INT, required=True),
        FieldSpec("courseId", "course_id_c", INT, required=True),
        FieldSpec("grade", "grade_c", required=True),
        FieldSpec("points", "points_c", DECIMAL, default=0.0),
        FieldSpec("semester", "semester_c", required=True),
        FieldSpec("year", "year_c", INT, required=True),
        FieldSpec("dateEntered", "date_entered_c"),
    ),
    search_fields=("grade", "semester", "year"),
    label=lambda d: f"{_text(d, 'grade')} - {_text(d, 'semester')} {_text(d, 'year')}".strip(),
    defaults=lambda today: {
        "semester": current_semester(today),
        "year": str(today.year),
        "dateEntered": today.isoformat(),
    },
    derived={"grade": _points_for},
)

ENROLLMENT = EntitySchema(
    entity="enrollment",
    table="enrollment_c",
    fields=(
        FieldSpec("studentId", "student_id_c", INT, required=True),
        FieldSpec("courseId", "course_id_c", INT, required=True),
        FieldSpec("enrollmentDate", "enrollment_date_c"),
        FieldSpec("status", "status_c", default="Enrolled"),
        FieldSpec("attendance", "attendance_c", INT, default=100),
    ),
    search_fields=("status", "enrollmentDate"),
    label=lambda d: f"Enrollment - {_text(d, 'enrollmentDate')}",
    defaults=lambda today: {"enrollmentDate": today.isoformat(), "status": "Enrolled", "attendance": "100"},
)

DOCUMENT = EntitySchema(
    entity="document",
    table="document_c",
    fields=(
        FieldSpec("title", "title_c", required=True),
        FieldSpec("description", "description_c"),
        FieldSpec("category", "category_c", required=True),
        FieldSpec("status", "status_c", default="Active"),
        FieldSpec("fileName", "file_name_c"),
        FieldSpec("fileSize", "file_size_c", INT, default=0),
        FieldSpec("fileType", "file_type_c"),
        FieldSpec("fileUrl", "file_url_c"),
        FieldSpec("studentId", "student_id_c", INT, required=True),
        FieldSpec("uploadDate", "upload_date_c"),
        FieldSpec("uploadedBy", "uploaded_by_c", default="System"),
        FieldSpec("lastModified", "last_modified_c"),
    ),
    search_fields=("title", "fileName", "description", "category"),
    stamped=("lastModified",),
    label=lambda d: _text(d, "title") or "Document",
    defaults=lambda today: {"status": "Active", "uploadDate": today.isoformat(), "uploadedBy": "System"},
)

SCHEMAS: Dict[str, EntitySchema] = {
    schema.entity: schema for schema in (STUDENT, COURSE, GRADE, ENROLLMENT, DOCUMENT)
}


def schema_for(entity: str) -> EntitySchema:
    try:
        return SCHEMAS[entity]
    except KeyError:
        raise KeyError(f"Unknown entity: {entity}") from None
