from smartcampus.models.assignments import SubjectGroupAssignment, TeacherSubjectAssignment  # noqa: F401
from smartcampus.models.generation_run import TimetableGenerationRun  # noqa: F401
from smartcampus.models.room import Room, RoomType  # noqa: F401
from smartcampus.models.student_group import StudentGroup  # noqa: F401
from smartcampus.models.subject import CourseType, Subject  # noqa: F401
from smartcampus.models.teacher import Teacher, TeacherUnavailability  # noqa: F401
from smartcampus.models.timetable_slot import TimetableSlot  # noqa: F401
