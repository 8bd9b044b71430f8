"""
Endpoints para jobs e tarefas agendadas.
"""

from fastapi import APIRouter

from .email_queue import router as email_queue_router

router = APIRouter(prefix="/jobs", tags=["Jobs"])
router.include_router(email_queue_router)
