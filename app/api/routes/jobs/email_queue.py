"""
Jobs da fila de emails.

POST /jobs/email-queue         -> processa um lote (scheduler e manual)
GET  /jobs/email-queue/status  -> contagem de jobs por status
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.timezone import iso_utc
from app.repositories.deps import get_email_job_repo
from app.repositories.email_job import EmailJobRepository
from app.services.email_queue import executar_email_queue

from ._helpers import job_endpoint

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/email-queue")
@job_endpoint("email-queue")
async def job_email_queue(
    limit: Optional[int] = Query(
        default=None,
        description="Tamanho do lote (padrao 10, limitado a [1, 25])",
    ),
):
    """
    Processa um lote da fila de emails.

    Schedule: */2 * * * * (a cada 2 minutos, sem limit)
    Manual: POST /jobs/email-queue?limit=5
    """
    summary = await executar_email_queue(limite=limit)
    return summary.to_dict()


@router.get("/email-queue/status")
async def email_queue_status(repo: EmailJobRepository = Depends(get_email_job_repo)):
    """Contagem de jobs por status."""
    return {
        "counts": await repo.count_by_status(),
        "timestamp": iso_utc(),
    }
