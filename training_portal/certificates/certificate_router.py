from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.certificates import certificate_service as service
from training_portal.certificates import survey_service
from training_portal.certificates.certificate_schemas import SurveySubmit
from training_portal.certificates.eligibility import evaluate_eligibility
from training_portal.core.database import get_db
from training_portal.core.permissions import (
    UserContext, get_current_student, get_current_teacher, verify_course_ownership
)

router = APIRouter(prefix="/certificates", tags=["Certificates"])


# ==================== STUDENT ====================

@router.get("/eligibility/{course_id}")
async def certificate_eligibility(
    course_id: str,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    What still stands between the student and the certificate
    """
    return await evaluate_eligibility(db, student.user_id, course_id)


@router.post("/survey/{course_id}", status_code=201)
async def submit_survey(
    course_id: str,
    data: SurveySubmit,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    survey = await survey_service.submit_survey(db, student, course_id, data.dict())
    return {"message": "Survey submitted successfully", "survey": survey}


@router.post("/generate/{course_id}")
async def generate_certificate(
    course_id: str,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Issue the certificate on first eligible call, then return the same one.
    Each call is counted as a download.
    """
    certificate = await service.issue_or_fetch_certificate(db, student, course_id)
    return {
        "message": "Certificate generated successfully",
        "certificate": {
            "certificate_number": certificate["certificate_number"],
            "student_name": certificate["student_name"],
            "course_name": certificate["course_name"],
            "teacher_name": certificate["teacher_name"],
            "completion_stats": certificate["completion_stats"],
            "issued_at": certificate["issued_at"],
            "verification_code": certificate["verification_code"],
            "download_count": certificate["download_count"]
        }
    }


@router.get("/my-certificates")
async def my_certificates(
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_my_certificates(db, student)


# ==================== PUBLIC ====================

@router.get("/verify/{certificate_number}")
async def verify_certificate(certificate_number: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Anyone can check a certificate number; an unknown one answers 404 with valid false
    """
    result = await service.verify_certificate(db, certificate_number)
    if result is None:
        return JSONResponse(status_code=404, content={"valid": False, "message": "Certificate not found"})
    return result


# ==================== TEACHER ====================

@router.get("/survey-analytics/{course_id}")
async def survey_analytics(
    course_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await verify_course_ownership(db, course_id, teacher)
    return await survey_service.get_survey_analytics(db, course_id)


@router.get("/teacher-analytics")
async def teacher_analytics(
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Survey averages and certificate totals across all of the teacher's courses
    """
    return await survey_service.get_teacher_survey_analytics(db, teacher)
