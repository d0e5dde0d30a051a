"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from learnify.api.routes.auth_routes import router as auth_router
from learnify.api.routes.checkin_routes import router as checkin_router
from learnify.api.routes.review_routes import review_router, reflection_router
from learnify.api.routes.submission_routes import router as submission_router, files_router
from learnify.api.routes.project_note_routes import router as project_note_router
from learnify.api.routes.voting_routes import router as voting_router
from learnify.api.routes.quiz_routes import router as quiz_router
from learnify.api.routes.lesson_routes import router as lesson_router
from learnify.api.routes.feedback_routes import router as feedback_router
from learnify.api.routes.leaderboard_routes import router as leaderboard_router
from learnify.api.routes.admin_routes import router as admin_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(checkin_router)
api_router.include_router(review_router)
api_router.include_router(reflection_router)
api_router.include_router(submission_router)
api_router.include_router(files_router)
api_router.include_router(project_note_router)
api_router.include_router(voting_router)
api_router.include_router(quiz_router)
api_router.include_router(lesson_router)
api_router.include_router(feedback_router)
api_router.include_router(leaderboard_router)
api_router.include_router(admin_router)
