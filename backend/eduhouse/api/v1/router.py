from fastapi import APIRouter

from eduhouse.api.v1.endpoints import assessments, health, questions, schools, takers


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(assessments.router)
api_router.include_router(questions.router)
api_router.include_router(takers.router)
api_router.include_router(schools.router)
