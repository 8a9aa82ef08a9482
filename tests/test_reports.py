import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from app.reports import (
    courses_for_day,
    courses_for_slot,
    dashboard_stats,
    format_file_size,
    load_report_data,
    summarize,
)
from app.stores import MemoryRecordGateway
from registrar.errors import RemoteFailure


def _data() -> dict:
    return {
        "students": [
            {"year": "Freshman", "status": "Active", "gpa": "3.5"},
            {"year": "Senior", "status": "Inactive", "gpa": "4"},
            {"year": "Freshman", "status": "Active", "gpa": ""},
        ],
        "courses": [
            {"department": "Mathematics", "capacity": "30", "enrolled": "15"},
            {"department": "History", "capacity": "20", "enrolled": "5"},
            {"department": "Mathematics", "capacity": "0", "enrolled": "0"},
        ],
        "grades": [{"grade": "A-"}, {"grade": "A"}, {"grade": "B+"}, {"grade": ""}],
        "enrollments": [{"status": "Enrolled"}, {"status": "Dropped"}, {"status": "Enrolled"}],
    }


class TestSummaries(unittest.TestCase):
    def test_summarize(self) -> None:
        summary = summarize(_data())
        self.assertEqual(summary["yearDistribution"], {"Freshman": 2, "Senior": 1})
        self.assertEqual(summary["gradeDistribution"], {"A": 2, "B": 1})
        self.assertEqual(summary["departmentEnrollment"], {"Mathematics": 15, "History": 5})
        self.assertEqual(summary["averageGPA"], "2.50")
        self.assertEqual(summary["enrollmentRate"], "40.0")
        self.assertEqual(summary["totalStudents"], 3)
        self.assertEqual(summary["totalCourses"], 3)
        self.assertEqual(summary["activeStudents"], 2)

    def test_empty_collections(self) -> None:
        summary = summarize({})
        self.assertEqual(summary["averageGPA"], "0.00")
        self.assertEqual(summary["enrollmentRate"], "0.0")

    def test_dashboard_stats(self) -> None:
        stats = dashboard_stats(_data())
        self.assertEqual(
            stats,
            {"totalStudents": 3, "activeStudents": 2, "coursesOffered": 3, "totalEnrolled": 2, "averageGPA": "2.50"},
        )


class TestSchedule(unittest.TestCase):
    def setUp(self) -> None:
        self.courses = [
            {"title": "History", "days": ["Tuesday"], "time": "9:00 AM - 10:00 AM"},
            {"title": "Algebra", "days": ["Monday", "Wednesday"], "time": "10:00 AM - 11:00 AM"},
            {"title": "Poetry", "days": ["Monday"], "time": "1:00 PM - 2:00 PM"},
        ]

    def test_courses_for_day_sorted_by_time(self) -> None:
        self.assertEqual([c["title"] for c in courses_for_day(self.courses, "Monday")], ["Algebra", "Poetry"])
        self.assertEqual([c["title"] for c in courses_for_day(self.courses)], ["History", "Algebra", "Poetry"])
        with self.assertRaises(ValueError):
            courses_for_day(self.courses, "Sunday")

    def test_courses_for_slot(self) -> None:
        picked = courses_for_slot(self.courses, "Wednesday", "10:00 AM - 11:00 AM")
        self.assertEqual([c["title"] for c in picked], ["Algebra"])
        self.assertEqual(courses_for_slot(self.courses, "Friday", "10:00 AM - 11:00 AM"), [])

    def test_format_file_size(self) -> None:
        self.assertEqual(format_file_size(0), "0 Bytes")
        self.assertEqual(format_file_size(512), "512 Bytes")
        self.assertEqual(format_file_size(1024), "1 KB")
        self.assertEqual(format_file_size(1536), "1.5 KB")
        self.assertEqual(format_file_size(10 * 1024 * 1024), "10 MB")
        self.assertEqual(format_file_size("2048"), "2 KB")


class _BrokenGrades(MemoryRecordGateway):
    async def _fetch(self, table, params):
        if table == "grade_c":
            return {"success": False, "message": "Grades unavailable"}
        return await super()._fetch(table, params)


class TestLoadReportData(unittest.IsolatedAsyncioTestCase):
    async def test_loads_all_collections(self) -> None:
        gateway = MemoryRecordGateway(
            seed={
                "student_c": [{"Id": 1, "first_name_c": "Ada", "gpa_c": 3.9, "year_c": "Senior", "status_c": "Active"}],
                "course_c": [{"Id": 1, "title_c": "Algebra", "capacity_c": 10, "enrolled_c": 4, "department_c": "Math"}],
                "grade_c": [{"Id": 1, "grade_c": "A", "student_id_c": 1, "course_id_c": 1}],
            }
        )
        data = await load_report_data(gateway)
        self.assertEqual(list(data), ["students", "courses", "grades", "enrollments"])
        self.assertEqual(data["students"][0]["gpa"], "3.9")
        self.assertEqual(data["enrollments"], [])
        summary = summarize(data)
        self.assertEqual(summary["enrollmentRate"], "40.0")
        self.assertEqual(summary["gradeDistribution"], {"A": 1})

    async def test_failure_propagates(self) -> None:
        with self.assertRaises(RemoteFailure):
            await load_report_data(_BrokenGrades())


if __name__ == "__main__":
    unittest.main()
