"""
Repositories - Camada de acesso a dados.

Este modulo implementa o padrao Repository para desacoplar
a logica da fila do banco de dados.

Vantagens:
- Testes unitarios sem mocks complexos de import
- Injecao de dependencia via FastAPI Depends
- Worker recebe o repository pronto (sem cliente global)

Uso com dependency injection:
    from fastapi import Depends
    from app.repositories import EmailJobRepository
    from app.repositories.deps import get_email_job_repo

    @router.get("/email-queue/status")
    async def status(repo: EmailJobRepository = Depends(get_email_job_repo)):
        return await repo.count_by_status()

Uso em testes:
    repo = EmailJobRepository(FakeSupabase())
    # Testar sem patches!

Entidades disponiveis:
- EmailJob: Um email na fila de envio
"""

from .base import BaseRepository
from .email_job import EmailJobRepository, EmailJob, JobStatus, clamp_limit
from .deps import get_email_job_repo

__all__ = [
    # Base
    "BaseRepository",
    # EmailJob
    "EmailJobRepository",
    "EmailJob",
    "JobStatus",
    "clamp_limit",
    # Dependency injection
    "get_email_job_repo",
]
