from timetable_backend.models.base import Base
from timetable_backend.models.classroom import Classroom
from timetable_backend.models.staff_member import StaffMember
from timetable_backend.models.subject import Subject
from timetable_backend.models.timetable_structure import TimetableStructure

__all__ = [
	"Base",
	"Classroom",
	"StaffMember",
	"Subject",
	"TimetableStructure",
]
