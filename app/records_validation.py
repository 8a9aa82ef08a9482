"""Form validation rules for display-model drafts."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping

from registrar.field_adapter import EntitySchema
from registrar.schemas import (
    DOCUMENT_CATEGORIES,
    DOCUMENT_STATUSES,
    ENROLLMENT_STATUSES,
    GRADE_LETTERS,
    SEMESTERS,
    STUDENT_STATUSES,
    STUDENT_YEARS,
)

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
URL_RE = re.compile(r"^https?://.+\..+")

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_UPLOAD_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/png",
    "image/jpeg",
    "image/jpg",
)

Check = Callable[[Any, Mapping[str, Any]], bool]


@dataclass(frozen=True)
class Rule:
    field: str
    check: Check
    message: str
    optional: bool = False
    create_only: bool = False


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def required(field: str, message: str) -> Rule:
    return Rule(field, lambda v, d: not is_blank(v), message)


def chosen(field: str, message: str) -> Rule:
    # selects bind ids as int or str
    return Rule(field, lambda v, d: not is_blank(v) and v != 0, message)


def numeric(field: str, message: str) -> Rule:
    return Rule(field, lambda v, d: not is_blank(v) and to_number(v) is not None, message)


def whole_number(field: str, message: str, optional: bool = True) -> Rule:
    def _check(value: Any, draft: Mapping[str, Any]) -> bool:
        number = to_number(value)
        return number is not None and number.is_integer()

    return Rule(field, _check, message, optional=optional)


def between(field: str, low: float | None, high: float | None, message: str, optional: bool = True) -> Rule:
    def _check(value: Any, draft: Mapping[str, Any]) -> bool:
        number = to_number(value)
        if number is None:
            return False
        if low is not None and number < low:
            return False
        return high is None or number <= high

    return Rule(field, _check, message, optional=optional)


def matches(field: str, pattern: re.Pattern, message: str, optional: bool = False) -> Rule:
    return Rule(field, lambda v, d: bool(pattern.search(str(v or ""))), message, optional=optional)


def one_of(field: str, options: Iterable[str], message: str) -> Rule:
    allowed = tuple(options)
    return Rule(field, lambda v, d: v in allowed, message, optional=True)


def range_text(field: str, message: str, optional: bool = False) -> Rule:
    def _check(value: Any, draft: Mapping[str, Any]) -> bool:
        low, sep, high = str(value or "").partition("-")
        return bool(sep) and bool(low.strip()) and bool(high.strip())

    return Rule(field, _check, message, optional=optional)


def non_empty_set(field: str, message: str) -> Rule:
    return Rule(field, lambda v, d: isinstance(v, (list, tuple, set, frozenset)) and len(v) > 0, message)


RULES: Dict[str, List[Rule]] = {
    "student": [
        required("firstName", "First name is required"),
        required("lastName", "Last name is required"),
        required("email", "Email is required"),
        matches("email", EMAIL_RE, "Email is invalid"),
        required("studentId", "Student ID is required"),
        required("major", "Major is required"),
        chosen("year", "Year is required"),
        one_of("year", STUDENT_YEARS, "Year is invalid"),
        one_of("status", STUDENT_STATUSES, "Status is invalid"),
        between("gpa", 0, 4, "GPA must be between 0 and 4"),
        whole_number("rating", "Rating must be a whole number"),
        between("rating", 0, 5, "Rating must be between 0 and 5"),
        between("amountPaid", 0, None, "Amount paid cannot be negative"),
    ],
    "course": [
        required("courseCode", "Course code is required"),
        required("title", "Course title is required"),
        numeric("credits", "Valid credits required"),
        whole_number("credits", "Credits must be a whole number"),
        between("credits", 1, 6, "Credits must be between 1 and 6"),
        required("department", "Department is required"),
        numeric("capacity", "Valid capacity required"),
        whole_number("capacity", "Capacity must be a whole number"),
        between("capacity", 0, None, "Capacity cannot be negative"),
        whole_number("enrolled", "Enrolled must be a whole number"),
        between("enrolled", 0, None, "Enrolled cannot be negative"),
        required("instructor", "Instructor is required"),
        non_empty_set("days", "At least one day must be selected"),
        required("time", "Time is required"),
        range_text("time", "Time must be a range like 09:00-10:30"),
        chosen("semester", "Semester is required"),
        one_of("semester", SEMESTERS, "Semester is invalid"),
        numeric("year", "Valid year required"),
        whole_number("year", "Year must be a whole number"),
        matches("email", EMAIL_RE, "Email is invalid", optional=True),
        matches("website", URL_RE, "Website must be a valid http(s) URL", optional=True),
        range_text("experienceLevel", "Experience level must be a range like 0-2", optional=True),
    ],
    "grade": [
        chosen("studentId", "Student is required"),
        whole_number("studentId", "Student is invalid"),
        chosen("courseId", "Course is required"),
        whole_number("courseId", "Course is invalid"),
        chosen("grade", "Grade is required"),
        one_of("grade", GRADE_LETTERS, "Grade is invalid"),
        chosen("semester", "Semester is required"),
        chosen("year", "Year is required"),
        whole_number("year", "Year must be a whole number"),
        between("points", 0, 4, "Points must be between 0 and 4"),
    ],
    "enrollment": [
        chosen("studentId", "Student is required"),
        whole_number("studentId", "Student is invalid"),
        chosen("courseId", "Course is required"),
        whole_number("courseId", "Course is invalid"),
        required("enrollmentDate", "Enrollment date is required"),
        chosen("status", "Status is required"),
        one_of("status", ENROLLMENT_STATUSES, "Status is invalid"),
        numeric("attendance", "Valid attendance required"),
        whole_number("attendance", "Attendance must be a whole number"),
        between("attendance", 0, 100, "Attendance must be between 0 and 100"),
    ],
    "document": [
        required("title", "Title is required"),
        chosen("category", "Category is required"),
        one_of("category", DOCUMENT_CATEGORIES, "Category is invalid"),
        chosen("studentId", "Student selection is required"),
        whole_number("studentId", "Student selection is invalid"),
        one_of("status", DOCUMENT_STATUSES, "Status is invalid"),
        Rule("fileName", lambda v, d: not is_blank(v), "File is required for new documents", create_only=True),
        whole_number("fileSize", "File size must be a whole number"),
    ],
}


def rules_for(entity: str | EntitySchema) -> List[Rule]:
    name = entity.entity if isinstance(entity, EntitySchema) else entity
    try:
        return RULES[name]
    except KeyError:
        raise KeyError(f"No validation rules for entity: {name}") from None


def validate(entity: str | EntitySchema, draft: Mapping[str, Any], for_create: bool = True) -> Dict[str, str]:
    """Return ``{field: message}`` for the first failing rule of each field.

    Rules run in declaration order; once a field has failed, its later rules
    are skipped. Optional rules only apply when the field has a value.
    """
    errors: Dict[str, str] = {}
    for rule in rules_for(entity):
        if rule.field in errors:
            continue
        if rule.create_only and not for_create:
            continue
        value = draft.get(rule.field)
        if rule.optional and is_blank(value):
            continue
        if not rule.check(value, draft):
            errors[rule.field] = rule.message
    return errors


def validate_upload(file_name: str | None, size: int | None, mime_type: str | None) -> str | None:
    if not file_name:
        return "File is required for new documents"
    if (mime_type or "").lower() not in ALLOWED_UPLOAD_TYPES:
        return "Only PDF, Word documents, and images are allowed"
    if size is None or size < 0:
        return "File size is unknown"
    if size > MAX_UPLOAD_BYTES:
        return "File size must be less than 10MB"
    return None
