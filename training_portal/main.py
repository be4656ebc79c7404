"""
Training Portal - Main Application
Course authoring, enrollment, attendance, feedback and certificates
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from training_portal.admin.admin_router import router as admin_router
from training_portal.analytics.analytics_router import router as analytics_router
from training_portal.attendance.attendance_router import router as attendance_router
from training_portal.certificates.certificate_router import router as certificate_router
from training_portal.core.config import get_config
from training_portal.core.database import close_client, create_indexes, get_db_instance
from training_portal.core.errors import register_error_handlers
from training_portal.courses.course_router import router as course_router
from training_portal.enrollments.enrollment_router import router as enrollment_router
from training_portal.evaluations.evaluation_router import router as evaluation_router
from training_portal.feedback.feedback_router import router as feedback_router
from training_portal.ratings.rating_router import router as rating_router
from training_portal.system.health_router import router as health_router
from training_portal.users.user_router import auth_router, router as user_router

config = get_config()

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Training Portal")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


# ==================== ROUTER REGISTRATION ====================

def setup_routes(app: FastAPI):
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(admin_router)
    app.include_router(course_router)
    app.include_router(enrollment_router)
    app.include_router(attendance_router)
    app.include_router(rating_router)
    app.include_router(evaluation_router)
    app.include_router(feedback_router)
    app.include_router(certificate_router)
    app.include_router(analytics_router)
    app.include_router(health_router)


setup_routes(app)


# ==================== LIFECYCLE ====================

@app.on_event("startup")
async def startup_event():
    await create_indexes(get_db_instance())
    if not config.admin_configured:
        logger.warning("ADMIN_EMAIL / ADMIN_PASSWORD_HASH not set; admin login is disabled")
    logger.info("Training portal started")


@app.on_event("shutdown")
async def shutdown_event():
    close_client()
