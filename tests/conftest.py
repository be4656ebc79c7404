import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["ADMIN_EMAIL"] = "admin@portal.test"
os.environ["MONGO_DB_NAME"] = "training_portal_test"

from training_portal.core.auth_utils import hash_password  # noqa: E402

ADMIN_PASSWORD = "operator-pass"
os.environ["ADMIN_PASSWORD_HASH"] = hash_password(ADMIN_PASSWORD, iterations=1000)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402

from training_portal.attendance import attendance_service  # noqa: E402
from training_portal.core.config import get_config  # noqa: E402
from training_portal.core.database import generate_id, get_db  # noqa: E402
from training_portal.core.permissions import UserContext  # noqa: E402
from training_portal.courses import course_service  # noqa: E402
from training_portal.courses.course_models import CourseStatus  # noqa: E402
from training_portal.enrollments.enrollment_models import Enrollment, EnrollmentStatus  # noqa: E402
from training_portal.users.user_models import Role, User  # noqa: E402

get_config.cache_clear()


class Seeder:
    """Builds users, courses, enrollments and attendance straight through the services"""

    def __init__(self, db):
        self.db = db
        self._counter = 0

    async def user(self, role: Role, name: str = None) -> UserContext:
        self._counter += 1
        user = User(
            user_id=generate_id("USR"),
            name=name or f"{role.value.title()} {self._counter}",
            email=f"{role.value}{self._counter}@portal.test",
            password_hash=hash_password("secret123", iterations=1000),
            role=role,
            verified_teacher=role is Role.TEACHER
        )
        doc = user.dict()
        await self.db.users.insert_one(doc)
        doc.pop("_id", None)
        return UserContext(user.user_id, role, doc)

    async def course(self, teacher: UserContext, total_days: int = 3, status: CourseStatus = CourseStatus.ACTIVE,
                     sections: list = None) -> dict:
        course = await course_service.create_course(self.db, teacher, {
            "title": "Python Bootcamp",
            "description": "Hands-on training",
            "total_days": total_days,
            "sections": sections or []
        })
        if status != CourseStatus.DRAFT:
            await self.db.courses.update_one({"course_id": course["course_id"]}, {"$set": {"status": status.value}})
        return await self.load_course(course["course_id"])

    async def load_course(self, course_id: str) -> dict:
        return await self.db.courses.find_one({"course_id": course_id})

    async def enrollment(self, student: UserContext, course: dict,
                         status: EnrollmentStatus = EnrollmentStatus.APPROVED) -> dict:
        enrollment = Enrollment(
            enrollment_id=generate_id("ENR"),
            student_id=student.user_id,
            course_id=course["course_id"],
            status=status
        )
        doc = enrollment.dict()
        await self.db.enrollments.insert_one(doc)
        return doc

    async def complete_days(self, teacher: UserContext, course_id: str, days):
        for day in days:
            course = await self.load_course(course_id)
            await attendance_service.change_day_completion(self.db, teacher, course, day, True)

    async def mark(self, teacher: UserContext, course_id: str, day: int, student: UserContext, status: str = "present"):
        course = await self.load_course(course_id)
        await attendance_service.mark_attendance(
            self.db, teacher, course, day, [{"student_id": student.user_id, "status": status}]
        )

    async def rate(self, student: UserContext, course_id: str, days, rating: int = 5):
        for day in days:
            await self.db.day_ratings.insert_one({
                "rating_id": generate_id("RAT"),
                "student_id": student.user_id,
                "course_id": course_id,
                "day_number": day,
                "rating": rating,
                "comment": ""
            })

    async def evaluation(self, student: UserContext, course_id: str):
        await self.db.evaluations.insert_one({
            "evaluation_id": generate_id("EVL"),
            "student_id": student.user_id,
            "course_id": course_id,
            "answers": {f"q{i}": "Good" for i in range(1, 21)}
        })

    async def enrollment_doc(self, student: UserContext, course_id: str) -> dict:
        return await self.db.enrollments.find_one({"student_id": student.user_id, "course_id": course_id})


@pytest.fixture
def db():
    return AsyncMongoMockClient()["training_portal_test"]


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def client(db):
    from training_portal.main import app

    async def override_get_db():
        return db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_password():
    return ADMIN_PASSWORD
