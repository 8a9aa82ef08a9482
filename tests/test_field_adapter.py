import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from registrar.errors import InvalidArgument, InvalidNumeric
from registrar.field_adapter import coerce_record_id, join_list, number_text, split_list, to_display, to_storage
from registrar.schemas import COURSE, DOCUMENT, ENROLLMENT, GRADE, STUDENT


def _student_record() -> dict:
    return {
        "Id": 3,
        "Name": "Ada Lovelace",
        "first_name_c": "Ada",
        "last_name_c": "Lovelace",
        "email_c": "ada@example.com",
        "student_id_c": "S001",
        "major_c": "Mathematics",
        "year_c": "Senior",
        "status_c": "Active",
        "gpa_c": 4.0,
        "rating_c": 5,
        "amount_paid_c": 1250.5,
        "hobbies_c": "Chess,Poetry,Chess",
    }


class TestToDisplay(unittest.TestCase):
    def test_storage_names_become_display_names(self) -> None:
        display = to_display(STUDENT, _student_record())
        self.assertEqual(display["Id"], 3)
        self.assertEqual(display["firstName"], "Ada")
        self.assertEqual(display["studentId"], "S001")
        self.assertNotIn("first_name_c", display)

    def test_numbers_render_as_text(self) -> None:
        display = to_display(STUDENT, _student_record())
        self.assertEqual(display["gpa"], "4")
        self.assertEqual(display["rating"], "5")
        self.assertEqual(display["amountPaid"], "1250.5")

    def test_sets_split_and_dedupe(self) -> None:
        display = to_display(STUDENT, _student_record())
        self.assertEqual(display["hobbies"], ["Chess", "Poetry"])

    def test_missing_fields_take_defaults(self) -> None:
        display = to_display(STUDENT, {"Id": 1})
        self.assertEqual(display["status"], "Active")
        self.assertEqual(display["gpa"], "0")
        self.assertEqual(display["phone"], "")
        self.assertEqual(display["hobbies"], [])

    def test_every_field_present_for_empty_record(self) -> None:
        display = to_display(COURSE, {})
        self.assertNotIn("Id", display)
        self.assertEqual(set(display), {spec.name for spec in COURSE.fields})
        self.assertIs(display["isActive"], True)

    def test_legacy_nested_schedule(self) -> None:
        legacy = {
            "Id": 2,
            "title": "Linear Algebra",
            "schedule": {"days": ["Monday", "Wednesday"], "time": "9:00 AM - 10:00 AM"},
        }
        display = to_display(COURSE, legacy)
        self.assertEqual(display["title"], "Linear Algebra")
        self.assertEqual(display["days"], ["Monday", "Wednesday"])
        self.assertEqual(display["time"], "9:00 AM - 10:00 AM")

    def test_storage_name_wins_over_legacy(self) -> None:
        record = {"days_c": "Friday", "schedule": {"days": ["Monday"]}}
        self.assertEqual(to_display(COURSE, record)["days"], ["Friday"])

    def test_invalid_id_rejected(self) -> None:
        with self.assertRaises(InvalidArgument):
            to_display(STUDENT, {"Id": "abc"})


class TestToStorage(unittest.TestCase):
    def test_round_trip_of_populated_student(self) -> None:
        display = to_display(STUDENT, _student_record())
        again = to_display(STUDENT, to_storage(STUDENT, display))
        self.assertEqual(again, display)

    def test_round_trip_of_populated_course(self) -> None:
        display = {
            "Id": 7,
            "courseCode": "MATH201",
            "title": "Linear Algebra",
            "credits": "4",
            "department": "Mathematics",
            "semester": "Fall",
            "year": "2026",
            "capacity": "30",
            "enrolled": "12",
            "days": ["Monday", "Wednesday"],
            "time": "9:00 AM - 10:00 AM",
            "instructor": "Dr. Noether",
            "room": "B12",
            "phone": "555-0100",
            "email": "math@example.edu",
            "website": "https://example.edu/math201",
            "amount": "450.75",
            "specializations": ["Algebra"],
            "topics": ["Vectors", "Matrices"],
            "deliveryMethods": ["In person"],
            "difficulty": "Intermediate",
            "experienceLevel": "0-2",
            "isActive": False,
        }
        self.assertEqual(to_display(COURSE, to_storage(COURSE, display)), display)

    def test_storage_names_and_types(self) -> None:
        storage = to_storage(
            STUDENT,
            {"firstName": "Ada", "lastName": "Lovelace", "gpa": "3.5", "rating": "4", "hobbies": ["Chess", " Math "]},
        )
        self.assertEqual(storage["first_name_c"], "Ada")
        self.assertEqual(storage["gpa_c"], 3.5)
        self.assertEqual(storage["rating_c"], 4)
        self.assertIsInstance(storage["rating_c"], int)
        self.assertEqual(storage["hobbies_c"], "Chess,Math")
        self.assertEqual(storage["Name"], "Ada Lovelace")
        self.assertNotIn("Id", storage)
        self.assertNotIn("firstName", storage)

    def test_id_carried_over(self) -> None:
        storage = to_storage(GRADE, {"Id": "5", "studentId": "3", "courseId": 2, "grade": "A", "semester": "Fall", "year": "2026"})
        self.assertEqual(storage["Id"], 5)
        self.assertEqual(storage["student_id_c"], 3)
        self.assertEqual(storage["course_id_c"], 2)
        self.assertEqual(storage["Name"], "A - Fall 2026")

    def test_required_number_must_parse(self) -> None:
        with self.assertRaises(InvalidNumeric) as ctx:
            to_storage(COURSE, {"courseCode": "X1", "title": "X", "credits": "three"})
        self.assertEqual(ctx.exception.path, "credits")

    def test_round_trip_of_populated_grade(self) -> None:
        display = {
            "Id": 4,
            "studentId": "3",
            "courseId": "2",
            "grade": "B+",
            "points": "3.3",
            "semester": "Fall",
            "year": "2026",
            "dateEntered": "2026-03-02",
        }
        self.assertEqual(to_display(GRADE, to_storage(GRADE, display)), display)

    def test_round_trip_of_populated_enrollment(self) -> None:
        display = {
            "Id": 9,
            "studentId": "3",
            "courseId": "2",
            "enrollmentDate": "2026-01-15",
            "status": "Dropped",
            "attendance": "87",
        }
        self.assertEqual(to_display(ENROLLMENT, to_storage(ENROLLMENT, display)), display)

    def test_round_trip_of_populated_document(self) -> None:
        display = {
            "Id": 12,
            "title": "Transcript 2026",
            "description": "Spring term transcript",
            "category": "Transcript",
            "status": "Archived",
            "fileName": "transcript.pdf",
            "fileSize": "2048",
            "fileType": "pdf",
            "fileUrl": "https://files.example.edu/transcript.pdf",
            "studentId": "4",
            "uploadDate": "2026-03-02",
            "uploadedBy": "Registrar",
            "lastModified": "2026-03-02T10:00:00Z",
        }
        self.assertEqual(to_display(DOCUMENT, to_storage(DOCUMENT, display)), display)

    def test_integer_fields_refuse_fractions(self) -> None:
        cases = [
            (STUDENT, {"rating": "3.5"}, "rating"),
            (COURSE, {"courseCode": "X1", "title": "X", "credits": "2.5", "year": "2026", "capacity": "20"}, "credits"),
            (ENROLLMENT, {"studentId": "3", "courseId": "2", "attendance": "99.5"}, "attendance"),
            (DOCUMENT, {"studentId": "4", "fileSize": 10.25}, "fileSize"),
        ]
        for schema, display, field in cases:
            with self.subTest(entity=schema.entity, field=field):
                with self.assertRaises(InvalidNumeric) as ctx:
                    to_storage(schema, display)
                self.assertEqual(ctx.exception.path, field)

    def test_integral_decimal_text_accepted_for_integer_field(self) -> None:
        self.assertEqual(to_storage(STUDENT, {"rating": "4.0"})["rating_c"], 4)

    def test_optional_number_falls_back_to_default(self) -> None:
        storage = to_storage(STUDENT, {"gpa": "n/a", "rating": ""})
        self.assertEqual(storage["gpa_c"], 0.0)
        self.assertEqual(storage["rating_c"], 0)

    def test_bool_default_and_text(self) -> None:
        storage = to_storage(COURSE, {"credits": "3", "year": "2026", "capacity": "20"})
        self.assertIs(storage["is_active_c"], True)
        self.assertIs(to_storage(COURSE, {"credits": "3", "year": "2026", "capacity": "20", "isActive": "false"})["is_active_c"], False)

    def test_document_defaults(self) -> None:
        storage = to_storage(DOCUMENT, {"title": "Transcript 2026", "studentId": "4"})
        self.assertEqual(storage["uploaded_by_c"], "System")
        self.assertEqual(storage["status_c"], "Active")
        self.assertEqual(storage["file_size_c"], 0)


class TestHelpers(unittest.TestCase):
    def test_coerce_record_id(self) -> None:
        self.assertEqual(coerce_record_id(7), 7)
        self.assertEqual(coerce_record_id("7"), 7)
        self.assertEqual(coerce_record_id(7.0), 7)
        for bad in (0, -1, "abc", "", None, True, 7.5):
            with self.assertRaises(InvalidArgument):
                coerce_record_id(bad)

    def test_number_text(self) -> None:
        self.assertEqual(number_text(4.0), "4")
        self.assertEqual(number_text(3.75), "3.75")
        self.assertEqual(number_text(None), "")
        self.assertEqual(number_text(" 12 "), "12")

    def test_list_helpers(self) -> None:
        self.assertEqual(split_list("a, b,,a"), ["a", "b"])
        self.assertEqual(split_list(None), [])
        self.assertEqual(join_list(["x", "y", "x"]), "x,y")


if __name__ == "__main__":
    unittest.main()
