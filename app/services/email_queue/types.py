"""
Tipos da fila de emails.

Cada job processado termina em exatamente um JobOutcome; o worker
agrega os outcomes no EmailQueueSummary devolvido pelos triggers.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classificacao dos erros da fila."""
    VALIDATION = "validation"        # permanente, sem retry
    DELIVERY = "delivery"            # transitorio, retry com backoff
    CLAIM_LOST = "claim_lost"        # nao e erro: outra invocacao pegou o job
    UNEXPECTED = "unexpected"        # isolado no job, lote continua


class JobOutcome(str, Enum):
    """Resultado do processamento de um job."""
    SENT = "sent"
    RETRY_SCHEDULED = "retry_scheduled"
    FAILED_VALIDATION = "failed_validation"
    FAILED_EXHAUSTED = "failed_exhausted"
    FAILED_UNEXPECTED = "failed_unexpected"
    CLAIM_LOST = "claim_lost"

    @property
    def is_success(self) -> bool:
        return self == JobOutcome.SENT

    @property
    def is_failure(self) -> bool:
        """Falha permanente (job terminou em failed)."""
        return self in (
            JobOutcome.FAILED_VALIDATION,
            JobOutcome.FAILED_EXHAUSTED,
            JobOutcome.FAILED_UNEXPECTED,
        )

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return _ERROR_KIND.get(self)


_ERROR_KIND = {
    JobOutcome.RETRY_SCHEDULED: ErrorKind.DELIVERY,
    JobOutcome.FAILED_EXHAUSTED: ErrorKind.DELIVERY,
    JobOutcome.FAILED_VALIDATION: ErrorKind.VALIDATION,
    JobOutcome.FAILED_UNEXPECTED: ErrorKind.UNEXPECTED,
    JobOutcome.CLAIM_LOST: ErrorKind.CLAIM_LOST,
}


@dataclass
class ResultadoJob:
    """Resultado tipado do processamento de um job."""
    job_id: str
    outcome: JobOutcome
    error: Optional[str] = None
    attempts: Optional[int] = None


@dataclass
class EmailQueueSummary:
    """Estatisticas de uma invocacao do worker."""
    processed: int = 0
    sent: int = 0
    failed: int = 0
    retried: int = 0
    skipped: int = 0
    reaped: int = 0
    duration_ms: int = 0
    resultados: list[ResultadoJob] = field(default_factory=list)

    def registrar(self, resultado: ResultadoJob) -> None:
        """Agrega o resultado de um job nos contadores."""
        self.resultados.append(resultado)
        outcome = resultado.outcome

        if outcome == JobOutcome.CLAIM_LOST:
            self.skipped += 1
            return

        self.processed += 1
        if outcome.is_success:
            self.sent += 1
        elif outcome == JobOutcome.RETRY_SCHEDULED:
            self.retried += 1
        elif outcome.is_failure:
            self.failed += 1

    def to_dict(self) -> dict:
        """Corpo da resposta dos triggers."""
        return {
            "ok": True,
            "processed": self.processed,
            "sent": self.sent,
            "failed": self.failed,
            "retried": self.retried,
            "skipped": self.skipped,
            "reaped": self.reaped,
            "duration_ms": self.duration_ms,
        }
