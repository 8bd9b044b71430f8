"""
Worker da fila de emails (email_jobs).

Uma invocacao = um lote:
1. Verifica configuracao (aborta tudo se faltar algo)
2. Libera claims presos em sending ha mais de CLAIM_TIMEOUT
3. Busca lote elegivel (pending, send_after vencido, FIFO)
4. Para cada job: claim -> valida -> envia -> finaliza
5. Devolve o resumo

Invocacoes sobrepostas sao esperadas; o claim condicional garante que
cada job e processado por uma so. O worker nao guarda estado entre
invocacoes.
"""
import logging
import time
from datetime import timedelta
from typing import Optional

from app.core.config import Settings
from app.core.exceptions import DatabaseError
from app.core.logging import campos
from app.repositories.email_job import EmailJob, clamp_limit
from app.services.email_providers import EmailMessage

from .backoff import next_send_after, should_retry
from .deps import EmailQueueDeps, email_queue_deps, verificar_configuracao
from .types import EmailQueueSummary, JobOutcome, ResultadoJob
from .validator import validate_job

logger = logging.getLogger(__name__)


async def processar_email_queue(
    deps: EmailQueueDeps,
    limite: Optional[int] = None,
) -> EmailQueueSummary:
    """
    Processa um lote da fila.

    Args:
        deps: Dependencias da invocacao (store, provider, settings, clock)
        limite: Tamanho do lote, limitado a [1, MAX_LIMIT]

    Returns:
        EmailQueueSummary com os contadores

    Raises:
        ConfigurationError: Configuracao obrigatoria ausente
        DatabaseError: Falha ao ler o lote (nenhum job foi tocado)
    """
    inicio = time.monotonic()
    verificar_configuracao(deps.settings)

    limite = clamp_limit(limite)
    summary = EmailQueueSummary()
    agora = deps.clock()

    summary.reaped = await _liberar_claims_expirados(deps)

    logger.info(f"[EmailQueue] Buscando ate {limite} jobs pendentes")
    lote = await deps.store.fetch_eligible_batch(limite, agora)

    if not lote:
        logger.info("[EmailQueue] Nenhum job pendente")
    else:
        logger.info(f"[EmailQueue] {len(lote)} jobs pendentes, processando")
        for job in lote:
            summary.registrar(await processar_job(deps, job))

    summary.duration_ms = int((time.monotonic() - inicio) * 1000)
    logger.info(
        f"[EmailQueue] Processamento concluido: processed={summary.processed} "
        f"sent={summary.sent} failed={summary.failed} retried={summary.retried}",
        extra=campos(**summary.to_dict()),
    )
    return summary


async def processar_job(deps: EmailQueueDeps, job: EmailJob) -> ResultadoJob:
    """
    Processa um job do lote.

    Nunca levanta exception: qualquer erro inesperado apos o claim marca
    o job como failed e o lote segue.
    """
    try:
        claimed = await deps.store.try_claim(job.id, deps.clock())
    except DatabaseError as e:
        # Sem claim o job continua pending para a proxima passada
        logger.warning(f"[EmailQueue] Erro no claim do job {job.id}: {e}")
        return ResultadoJob(job.id, JobOutcome.CLAIM_LOST, error=str(e))

    if claimed is None:
        logger.info(f"[EmailQueue] Job {job.id} ja reivindicado, pulando")
        return ResultadoJob(job.id, JobOutcome.CLAIM_LOST)

    try:
        return await _processar_claimed(deps, claimed)
    except Exception as e:
        erro = str(e) or "Unexpected error"
        logger.error(
            f"[EmailQueue] Erro inesperado no job {claimed.id}: {erro}",
            exc_info=True,
            extra=campos(job_id=claimed.id, error_kind="unexpected"),
        )
        try:
            await deps.store.mark_failed(claimed.id, erro, deps.clock())
        except Exception as update_err:
            logger.error(
                f"[EmailQueue] Falha ao gravar erro do job {claimed.id}: {update_err}"
            )
        return ResultadoJob(
            claimed.id, JobOutcome.FAILED_UNEXPECTED, error=erro, attempts=claimed.attempts
        )


async def _processar_claimed(deps: EmailQueueDeps, job: EmailJob) -> ResultadoJob:
    """Valida, envia e finaliza um job ja em sending."""
    logger.info(
        f"[EmailQueue] Processando job {job.id}",
        extra=campos(job_id=job.id, attempts=job.attempts),
    )

    validacao = validate_job(job)
    if not validacao.valid:
        erro = f"Validation failed: {validacao.error}"
        logger.error(
            f"[EmailQueue] Job {job.id} invalido: {validacao.error}",
            extra=campos(job_id=job.id, error_kind="validation"),
        )
        await deps.store.mark_failed(job.id, erro, deps.clock())
        return ResultadoJob(job.id, JobOutcome.FAILED_VALIDATION, error=erro, attempts=job.attempts)

    resultado = await deps.provider.send(_montar_mensagem(job))

    if resultado.success:
        await deps.store.mark_sent(job.id, deps.clock(), provider_message_id=resultado.message_id)
        logger.info(
            f"[EmailQueue] Job {job.id} enviado (message_id={resultado.message_id})",
            extra=campos(job_id=job.id, provider_message_id=resultado.message_id),
        )
        return ResultadoJob(job.id, JobOutcome.SENT, attempts=job.attempts)

    novas_tentativas = job.attempts + 1
    agora = deps.clock()

    if should_retry(novas_tentativas):
        send_after = next_send_after(
            agora,
            novas_tentativas,
            jitter_ratio=deps.settings.EMAIL_QUEUE_BACKOFF_JITTER,
            rng=deps.rng,
        )
        await deps.store.mark_retry(
            job.id,
            attempts=novas_tentativas,
            send_after=send_after,
            error=resultado.error or "Unknown error",
            agora=agora,
        )
        logger.warning(
            f"[EmailQueue] Job {job.id} falhou, retry em {send_after.isoformat()} "
            f"(tentativa {novas_tentativas})",
            extra=campos(job_id=job.id, error_kind="delivery", attempts=novas_tentativas),
        )
        return ResultadoJob(
            job.id, JobOutcome.RETRY_SCHEDULED, error=resultado.error, attempts=novas_tentativas
        )

    await deps.store.mark_failed(
        job.id,
        resultado.error or "Max retry attempts reached",
        agora,
        attempts=novas_tentativas,
    )
    logger.error(
        f"[EmailQueue] Job {job.id} falhou definitivamente apos {novas_tentativas} tentativas",
        extra=campos(job_id=job.id, error_kind="delivery", attempts=novas_tentativas),
    )
    return ResultadoJob(
        job.id, JobOutcome.FAILED_EXHAUSTED, error=resultado.error, attempts=novas_tentativas
    )


def _montar_mensagem(job: EmailJob) -> EmailMessage:
    return EmailMessage(
        to=job.recipient.strip(),
        subject=job.resolved_subject,
        text=job.text,
        html=job.html,
        sender=job.sender_override,
        reply_to=job.reply_to_override,
    )


async def _liberar_claims_expirados(deps: EmailQueueDeps) -> int:
    """Reaper de claims presos em sending (0 desativa)."""
    timeout_minutos = deps.settings.EMAIL_QUEUE_CLAIM_TIMEOUT_MINUTES
    if timeout_minutos <= 0:
        return 0
    agora = deps.clock()
    cutoff = agora - timedelta(minutes=timeout_minutos)
    return await deps.store.reap_stale_claims(cutoff, agora)


async def executar_email_queue(
    limite: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> EmailQueueSummary:
    """
    Ponto de entrada dos triggers (HTTP, scheduler e CLI).

    Raises:
        ConfigurationError: Configuracao obrigatoria ausente
        DatabaseError: Falha ao ler o lote
    """
    async with email_queue_deps(settings) as deps:
        return await processar_email_queue(deps, limite)
