"""
Rotas de health check.

- /health: Liveness básico (sempre 200 se app rodando)
- /health/ready: Readiness (configuração obrigatória da fila presente)
"""
from fastapi import APIRouter, Response
import logging

from app.core.config import get_settings
from app.core.timezone import iso_utc

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Verifica se a API está funcionando.
    Usado para monitoramento e load balancers.
    """
    return {
        "status": "healthy",
        "timestamp": iso_utc(),
        "service": "email-queue",
    }


@router.get("/health/ready")
async def readiness_check(response: Response):
    """
    Verifica se a API está pronta para processar a fila.

    Não faz chamadas externas: só confere se as variáveis
    obrigatórias estão configuradas.
    """
    settings = get_settings()
    faltando = [
        nome for nome, valor in settings.campos_obrigatorios_fila().items() if not valor
    ]

    if faltando:
        logger.warning(f"Readiness degradado, configuracao ausente: {faltando}")
        response.status_code = 503

    return {
        "status": "degraded" if faltando else "ready",
        "missing_config": faltando,
        "timestamp": iso_utc(),
    }
