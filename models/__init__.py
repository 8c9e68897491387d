from models.book import BookRef, placeholder_title
from models.course import Course
from models.school_class import SchoolClass
from models.student import Student
from models.selection import Selection
from models.snapshot import Snapshot, StudentProgress

__all__ = [
    "BookRef",
    "placeholder_title",
    "Course",
    "SchoolClass",
    "Student",
    "Selection",
    "Snapshot",
    "StudentProgress",
]
