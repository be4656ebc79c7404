import pytest

from training_portal.admin import admin_service
from training_portal.analytics import analytics_service
from training_portal.certificates.survey_service import get_teacher_survey_analytics, submit_survey
from training_portal.courses import course_service
from training_portal.enrollments.enrollment_models import EnrollmentStatus
from training_portal.feedback.feedback_service import submit_feedback
from training_portal.users.user_models import Role

SURVEY = {
    "overall_satisfaction": 4,
    "content_quality": 4,
    "teaching_effectiveness": 5,
    "course_material_quality": 3,
    "practical_application": 4,
    "difficulty_level": "appropriate",
    "what_you_learned": "Writing queries and reading execution plans.",
    "improvements": "Share the exercise files before each session.",
}


async def two_course_teacher(seed):
    """A teacher with a 4-day course (two approved, one pending) and an empty 2-day course"""
    teacher = await seed.user(Role.TEACHER)
    busy = await seed.course(teacher, total_days=4)
    quiet = await seed.course(teacher, total_days=2)
    first, second, waiting = [await seed.user(Role.STUDENT) for _ in range(3)]
    await seed.enrollment(first, busy)
    await seed.enrollment(second, busy)
    await seed.enrollment(waiting, busy, EnrollmentStatus.PENDING)
    return teacher, busy["course_id"], quiet["course_id"], first, second


# ==================== TEACHER ====================

@pytest.mark.asyncio
async def test_teacher_dashboard_counts(seed, db):
    teacher, busy_id, quiet_id, first, second = await two_course_teacher(seed)
    await seed.mark(teacher, busy_id, 1, first, "present")
    await seed.mark(teacher, busy_id, 1, second, "absent")
    await seed.mark(teacher, busy_id, 2, first, "present")

    dashboard = await analytics_service.teacher_dashboard(db, teacher)

    assert dashboard["total_courses"] == 2
    assert dashboard["active_courses"] == 2
    assert dashboard["total_students"] == 2
    assert dashboard["pending_requests"] == 1
    assert dashboard["avg_attendance"] == 67
    assert dashboard["completion_rate"] == 0

    busy = next(c for c in dashboard["courses"] if c["course_id"] == busy_id)
    assert (busy["enrolled_count"], busy["pending_count"]) == (2, 1)
    assert "sections" not in busy


@pytest.mark.asyncio
async def test_other_teachers_courses_stay_out(seed, db):
    teacher, busy_id, quiet_id, first, second = await two_course_teacher(seed)
    stranger = await seed.user(Role.TEACHER)
    await seed.course(stranger)

    distribution = await analytics_service.enrollment_distribution(db, teacher)
    assert {d["course_id"]: d["enrollment_count"] for d in distribution} == {busy_id: 2, quiet_id: 0}

    assert (await analytics_service.teacher_dashboard(db, stranger))["total_students"] == 0


@pytest.mark.asyncio
async def test_effectiveness_uses_real_ratings_and_feedback(seed, db):
    teacher, busy_id, quiet_id, first, second = await two_course_teacher(seed)
    for day in (1, 2, 3, 4):
        await seed.mark(teacher, busy_id, day, first, "present")
    await seed.rate(first, busy_id, [1], rating=5)
    await seed.rate(second, busy_id, [1], rating=2)
    await submit_feedback(db, first, busy_id, "The pacing on day one was right.", day_number=1)

    stats = {s["course_id"]: s for s in await analytics_service.course_effectiveness(db, teacher)}

    assert stats[busy_id]["student_count"] == 2
    assert stats[busy_id]["completion_rate"] == 50
    assert stats[busy_id]["average_rating"] == 3.5
    assert stats[busy_id]["feedback_count"] == 1
    assert stats[quiet_id]["average_rating"] is None
    assert stats[quiet_id]["completion_rate"] == 0


@pytest.mark.asyncio
async def test_attendance_summary_ignores_days_cut_from_the_course(seed, db):
    teacher, busy_id, quiet_id, first, second = await two_course_teacher(seed)
    await seed.mark(teacher, busy_id, 1, first, "present")
    await seed.mark(teacher, busy_id, 4, first, "present")
    await seed.mark(teacher, busy_id, 4, second, "absent")

    await course_service.update_course(db, teacher, await seed.load_course(busy_id), {"total_days": 3})
    summary = await analytics_service.attendance_summary(db, teacher)

    assert summary["overall"] == {"present": 1, "absent": 0, "total": 1, "percentage": 100}
    quiet = next(c for c in summary["by_course"] if c["course_id"] == quiet_id)
    assert quiet["total"] == 0
    assert quiet["percentage"] == 0


@pytest.mark.asyncio
async def test_teacher_survey_analytics_spans_courses(seed, db):
    teacher, busy_id, quiet_id, first, second = await two_course_teacher(seed)
    await submit_survey(db, first, busy_id, {**SURVEY, "recommend_to_others": True})
    await submit_survey(db, second, busy_id, {**SURVEY, "overall_satisfaction": 2, "recommend_to_others": False})

    result = await get_teacher_survey_analytics(db, teacher)

    assert result["analytics"]["total_surveys"] == 2
    assert result["analytics"]["avg_overall_satisfaction"] == 3
    assert result["analytics"]["certificates_issued"] == 0
    assert len(result["course_breakdown"]) == 1
    row = result["course_breakdown"][0]
    assert row["course_id"] == busy_id
    assert row["recommend_count"] == 1
    assert row["recommend_percentage"] == 50


@pytest.mark.asyncio
async def test_teacher_survey_analytics_without_surveys(seed, db):
    teacher = await seed.user(Role.TEACHER)
    assert await get_teacher_survey_analytics(db, teacher) == {"analytics": None, "course_breakdown": []}


# ==================== STUDENT ====================

@pytest.mark.asyncio
async def test_student_dashboard(seed, db):
    teacher, busy_id, quiet_id, first, second = await two_course_teacher(seed)
    await seed.enrollment(first, await seed.load_course(quiet_id))
    await seed.mark(teacher, busy_id, 1, first, "present")
    await seed.mark(teacher, quiet_id, 1, first, "present")
    await seed.mark(teacher, quiet_id, 2, first, "present")

    dashboard = await analytics_service.student_dashboard(db, first)

    assert dashboard["total_enrolled"] == 2
    assert dashboard["completed"] == 1
    assert dashboard["in_progress"] == 1
    assert dashboard["overall_attendance"] == 50
    assert dashboard["pending_approvals"] == 0
    progress = {row["course"]["course_id"]: row["progress"] for row in dashboard["courses"]}
    assert progress == {busy_id: 25, quiet_id: 100}


# ==================== ADMIN ====================

@pytest.mark.asyncio
async def test_admin_course_list_and_attendance_report(seed, db):
    teacher, busy_id, quiet_id, first, second = await two_course_teacher(seed)
    await seed.mark(teacher, busy_id, 2, first, "present")

    courses = {c["course_id"]: c for c in await admin_service.list_courses(db)}
    assert courses[busy_id]["enrolled_count"] == 2
    assert courses[quiet_id]["enrolled_count"] == 0
    assert courses[busy_id]["teacher"]["user_id"] == teacher.user_id

    report = await admin_service.attendance_report(db, busy_id)
    assert report["total_students"] == 2
    day_two = report["days"][1]
    assert (day_two["present_count"], day_two["absent_count"]) == (1, 0)
    assert {s["status"] for s in report["days"][0]["students"]} == {"not-marked"}

    assert len(await admin_service.attendance_reports(db)) == 2
