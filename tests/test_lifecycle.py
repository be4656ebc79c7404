import pytest
from fastapi import HTTPException

from training_portal.attendance import attendance_service
from training_portal.core.audit import get_audit_trail
from training_portal.courses import course_service
from training_portal.courses.course_models import CourseStatus
from training_portal.enrollments import enrollment_service
from training_portal.enrollments.enrollment_models import EnrollmentAction, EnrollmentStatus
from training_portal.users.user_models import Role


# ==================== ENROLLMENT ====================

@pytest.mark.asyncio
async def test_enrollment_starts_pending_and_is_decided_once(seed, db):
    teacher = await seed.user(Role.TEACHER)
    student = await seed.user(Role.STUDENT)
    course = await seed.course(teacher)

    enrollment = await enrollment_service.enroll_student(db, student, course["course_id"])
    assert enrollment["status"] == "pending"

    approved = await enrollment_service.decide_enrollment(
        db, teacher, enrollment["enrollment_id"], EnrollmentAction.APPROVE
    )
    assert approved["status"] == "approved"
    assert approved["approved_at"] is not None

    with pytest.raises(HTTPException) as exc:
        await enrollment_service.decide_enrollment(
            db, teacher, enrollment["enrollment_id"], EnrollmentAction.REJECT
        )
    assert exc.value.status_code == 400

    stored = await seed.enrollment_doc(student, course["course_id"])
    assert stored["status"] == "approved"


@pytest.mark.asyncio
async def test_enrollment_requires_open_active_course(seed, db):
    teacher = await seed.user(Role.TEACHER)
    student = await seed.user(Role.STUDENT)
    draft = await seed.course(teacher, status=CourseStatus.DRAFT)
    active = await seed.course(teacher)

    with pytest.raises(HTTPException) as exc:
        await enrollment_service.enroll_student(db, student, draft["course_id"])
    assert exc.value.status_code == 400

    await enrollment_service.enroll_student(db, student, active["course_id"])
    with pytest.raises(HTTPException) as exc:
        await enrollment_service.enroll_student(db, student, active["course_id"])
    assert exc.value.detail == "Already enrolled or enrollment pending"

    await course_service.toggle_enrollment(db, teacher, active)
    other = await seed.user(Role.STUDENT)
    with pytest.raises(HTTPException) as exc:
        await enrollment_service.enroll_student(db, other, active["course_id"])
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_only_owner_decides(seed, db):
    owner = await seed.user(Role.TEACHER)
    stranger = await seed.user(Role.TEACHER)
    student = await seed.user(Role.STUDENT)
    course = await seed.course(owner)
    enrollment = await seed.enrollment(student, course, EnrollmentStatus.PENDING)

    with pytest.raises(HTTPException) as exc:
        await enrollment_service.decide_enrollment(
            db, stranger, enrollment["enrollment_id"], EnrollmentAction.APPROVE
        )
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_bulk_action_ignores_foreign_and_decided(seed, db):
    owner = await seed.user(Role.TEACHER)
    stranger = await seed.user(Role.TEACHER)
    mine = await seed.course(owner)
    theirs = await seed.course(stranger)
    s1, s2, s3 = [await seed.user(Role.STUDENT) for _ in range(3)]
    e1 = await seed.enrollment(s1, mine, EnrollmentStatus.PENDING)
    e2 = await seed.enrollment(s2, mine, EnrollmentStatus.REJECTED)
    e3 = await seed.enrollment(s3, theirs, EnrollmentStatus.PENDING)

    count = await enrollment_service.bulk_decide(
        db, owner, [e1["enrollment_id"], e2["enrollment_id"], e3["enrollment_id"]], EnrollmentAction.APPROVE
    )

    assert count == 1
    assert (await seed.enrollment_doc(s2, mine["course_id"]))["status"] == "rejected"
    assert (await seed.enrollment_doc(s3, theirs["course_id"]))["status"] == "pending"


# ==================== COURSES ====================

@pytest.mark.asyncio
async def test_sections_follow_total_days(seed, db):
    teacher = await seed.user(Role.TEACHER)
    course = await seed.course(teacher, total_days=3)
    assert course["course_code"] == "CRS0001"
    assert [s["day_number"] for s in course["sections"]] == [1, 2, 3]

    await seed.complete_days(teacher, course["course_id"], [1])
    course = await seed.load_course(course["course_id"])
    updated = await course_service.update_course(db, teacher, course, {"total_days": 5})

    assert [s["day_number"] for s in updated["sections"]] == [1, 2, 3, 4, 5]
    assert updated["sections"][0]["completed"] is True

    course = await seed.load_course(course["course_id"])
    shrunk = await course_service.update_course(db, teacher, course, {"total_days": 2})
    assert len(shrunk["sections"]) == 2


@pytest.mark.asyncio
async def test_completion_is_strict_on_every_path(seed, db):
    teacher = await seed.user(Role.TEACHER)
    course = await seed.course(teacher, total_days=2)
    course_id = course["course_id"]

    with pytest.raises(HTTPException):
        await course_service.update_course(db, teacher, course, {"status": "completed"})
    with pytest.raises(HTTPException):
        await course_service.mark_course_completed(db, teacher, course)

    await seed.complete_days(teacher, course_id, [1, 2])
    course = await seed.load_course(course_id)
    completed = await course_service.mark_course_completed(db, teacher, course)

    assert completed["status"] == "completed"
    assert completed["completed_at"] is not None


@pytest.mark.asyncio
async def test_draft_cannot_jump_to_completed(seed, db):
    teacher = await seed.user(Role.TEACHER)
    course = await seed.course(teacher, total_days=1, status=CourseStatus.DRAFT)
    await seed.complete_days(teacher, course["course_id"], [1])
    course = await seed.load_course(course["course_id"])

    with pytest.raises(HTTPException) as exc:
        await course_service.update_course(db, teacher, course, {"status": "completed"})
    assert "draft" in exc.value.detail

    published = await course_service.update_course(db, teacher, course, {"status": "active"})
    assert published["status"] == "active"


@pytest.mark.asyncio
async def test_day_completion_fans_out_and_locks_after_completion(seed, db):
    teacher = await seed.user(Role.TEACHER)
    course = await seed.course(teacher, total_days=1)
    course_id = course["course_id"]
    students = [await seed.user(Role.STUDENT) for _ in range(2)]
    for student in students:
        await seed.enrollment(student, course)

    result = await attendance_service.change_day_completion(db, teacher, course, 1, True)
    assert result["recomputed"] == 2
    assert result["failed"] == []
    assert result["section"]["completed_by"] == teacher.user_id

    with pytest.raises(HTTPException) as exc:
        await attendance_service.change_day_completion(db, teacher, await seed.load_course(course_id), 2, True)
    assert exc.value.detail == "Invalid day number"

    await course_service.mark_course_completed(db, teacher, await seed.load_course(course_id))
    with pytest.raises(HTTPException) as exc:
        await attendance_service.change_day_completion(db, teacher, await seed.load_course(course_id), 1, False)
    assert exc.value.status_code == 400


# ==================== AUDIT TRAIL ====================

@pytest.mark.asyncio
async def test_audit_trail_filters_by_actor_and_action(seed, db):
    owner = await seed.user(Role.TEACHER)
    other = await seed.user(Role.TEACHER)
    student = await seed.user(Role.STUDENT)
    course = await seed.course(owner)
    await seed.course(other)
    enrollment = await seed.enrollment(student, course, EnrollmentStatus.PENDING)
    await enrollment_service.decide_enrollment(db, owner, enrollment["enrollment_id"], EnrollmentAction.APPROVE)

    mine = await get_audit_trail(db, actor_user_id=owner.user_id)
    assert {log["action"] for log in mine} == {"create_course", "approve_enrollment"}
    assert all("_id" not in log for log in mine)

    decisions = await get_audit_trail(db, actor_user_id=owner.user_id, action="approve_enrollment")
    assert len(decisions) == 1
    assert decisions[0]["target_id"] == enrollment["enrollment_id"]

    created = await get_audit_trail(db, action="create_course")
    assert {log["actor_user_id"] for log in created} == {owner.user_id, other.user_id}
