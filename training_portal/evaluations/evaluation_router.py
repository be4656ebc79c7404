from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import get_db
from training_portal.core.permissions import (
    UserContext, get_current_student, get_current_teacher, verify_course_ownership
)
from training_portal.evaluations import evaluation_service as service
from training_portal.evaluations.evaluation_models import EVALUATION_QUESTIONS
from training_portal.evaluations.evaluation_schemas import EvaluationSubmit

router = APIRouter(prefix="/evaluations", tags=["Evaluations"])


@router.get("/questions")
async def evaluation_questions():
    return {"total_questions": len(EVALUATION_QUESTIONS), "questions": EVALUATION_QUESTIONS}


@router.get("/public/courses")
async def public_courses(db: AsyncIOMotorDatabase = Depends(get_db)):
    return await service.list_public_courses(db)


@router.post("", status_code=201)
async def submit_evaluation(
    data: EvaluationSubmit,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Submit the 20-question evaluation once the course is finished
    """
    return await service.submit_evaluation(db, student, data.course_id, data.answers)


@router.get("/my-evaluation")
async def my_evaluation(
    course_id: str,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_my_evaluation(db, student, course_id)


@router.get("/course/{course_id}")
async def course_evaluations(
    course_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await verify_course_ownership(db, course_id, teacher)
    return await service.list_course_evaluations(db, course_id)


@router.get("/export/{course_id}")
async def export_evaluations(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    return await service.export_course_evaluations(db, course_id)
