"""
Dependency Injection para Repositories.

Este modulo fornece funcoes de dependencia para uso com FastAPI Depends.

Uso em endpoints:
    from app.repositories.deps import get_email_job_repo

    @router.get("/email-queue/status")
    async def status(repo: EmailJobRepository = Depends(get_email_job_repo)):
        return await repo.count_by_status()

Uso em testes:
    app.dependency_overrides[get_email_job_repo] = lambda: EmailJobRepository(FakeSupabase())
"""
from app.core.config import get_settings
from app.services.supabase import get_supabase_client
from .email_job import EmailJobRepository


def get_email_job_repo() -> EmailJobRepository:
    """
    Retorna EmailJobRepository ligado ao Supabase configurado.

    Raises:
        ConfigurationError: Se SUPABASE_URL ou SUPABASE_SERVICE_KEY faltarem
    """
    return EmailJobRepository(get_supabase_client(get_settings()))

