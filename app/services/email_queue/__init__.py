"""
Fila de emails transacionais (tabela email_jobs).

Entrega at-least-once com retry e backoff; invocada pelo scheduler
a cada 2 minutos e sob demanda via POST /jobs/email-queue.
"""

from .backoff import BACKOFF_MINUTES, MAX_ATTEMPTS, next_delay_minutes, next_send_after, should_retry
from .deps import EmailQueueDeps, email_queue_deps, verificar_configuracao
from .types import EmailQueueSummary, ErrorKind, JobOutcome, ResultadoJob
from .validator import ValidationResult, validate_job
from .worker import executar_email_queue, processar_email_queue, processar_job

__all__ = [
    # Backoff
    "BACKOFF_MINUTES",
    "MAX_ATTEMPTS",
    "next_delay_minutes",
    "next_send_after",
    "should_retry",
    # Dependencias
    "EmailQueueDeps",
    "email_queue_deps",
    "verificar_configuracao",
    # Tipos
    "EmailQueueSummary",
    "ErrorKind",
    "JobOutcome",
    "ResultadoJob",
    # Validacao
    "ValidationResult",
    "validate_job",
    # Worker
    "executar_email_queue",
    "processar_email_queue",
    "processar_job",
]
