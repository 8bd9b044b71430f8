"""
Repository para a fila de emails (tabela email_jobs).

Toda transicao de status e um unico UPDATE condicional no PostgREST:
- claim: pending -> sending (WHERE status = 'pending')
- finalizacao: sending -> sent | pending | failed (WHERE status = 'sending')

Nao existe lock, lease ou heartbeat: o UPDATE condicional e o unico
controle de concorrencia entre invocacoes sobrepostas.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from app.core.config import EmailQueueConfig
from app.core.exceptions import DatabaseError
from app.core.timezone import iso_utc, parse_iso

from .base import BaseRepository

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    """Status de um job da fila."""

    PENDING = "pending"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SENT, JobStatus.FAILED)


def truncar_erro(erro: Optional[str]) -> Optional[str]:
    """Trunca last_error para proteger o storage."""
    if erro is None:
        return None
    return erro[: EmailQueueConfig.LAST_ERROR_MAX_CHARS]


@dataclass
class EmailJob:
    """
    Entidade EmailJob.

    Destinatario, assunto e corpo podem vir do payload (formato atual)
    ou das colunas legadas to_email/subject.
    """

    id: str
    to_email: Optional[str] = None
    subject: Optional[str] = None
    payload: Optional[dict] = field(default_factory=dict)
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0
    reap_count: int = 0
    user_id: Optional[str] = None
    template_key: Optional[str] = None
    send_after: Optional[str] = None
    last_error: Optional[str] = None
    provider_message_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    sent_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "EmailJob":
        """Cria EmailJob a partir de dict do banco."""
        return cls(
            id=data.get("id", ""),
            to_email=data.get("to_email"),
            subject=data.get("subject"),
            payload=data.get("payload"),
            status=JobStatus(data.get("status", JobStatus.PENDING.value)),
            attempts=data.get("attempts") or 0,
            reap_count=data.get("reap_count") or 0,
            user_id=data.get("user_id"),
            template_key=data.get("template_key"),
            send_after=data.get("send_after"),
            last_error=data.get("last_error"),
            provider_message_id=data.get("provider_message_id"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            sent_at=data.get("sent_at"),
        )

    def _payload_get(self, key: str) -> Optional[str]:
        if isinstance(self.payload, dict):
            return self.payload.get(key)
        return None

    @property
    def recipient(self) -> Optional[str]:
        return self._payload_get("to") or self.to_email

    @property
    def resolved_subject(self) -> Optional[str]:
        return self._payload_get("subject") or self.subject

    @property
    def text(self) -> Optional[str]:
        return self._payload_get("text")

    @property
    def html(self) -> Optional[str]:
        return self._payload_get("html")

    @property
    def sender_override(self) -> Optional[str]:
        return self._payload_get("from")

    @property
    def reply_to_override(self) -> Optional[str]:
        return self._payload_get("replyTo")

    @property
    def send_after_dt(self) -> Optional[datetime]:
        return parse_iso(self.send_after)


class EmailJobRepository(BaseRepository[EmailJob]):
    """
    Job Store da fila de emails.

    Uso:
        repo = EmailJobRepository(get_supabase_client())
        job_id = await repo.enqueue(to_email="a@x.com", subject="Oi", text="...")
        lote = await repo.fetch_eligible_batch(10, agora_utc())
    """

    @property
    def table_name(self) -> str:
        return EmailQueueConfig.TABLE_NAME

    # ------------------------------------------------------------------
    # Leitura
    # ------------------------------------------------------------------

    async def buscar_por_id(self, id: str) -> Optional[EmailJob]:
        """Busca job por ID."""
        try:
            response = self.table().select("*").eq("id", id).execute()
        except Exception as e:
            raise DatabaseError(f"Erro ao buscar job {id}", original_error=e) from e
        if response.data:
            return EmailJob.from_dict(response.data[0])
        return None

    async def fetch_eligible_batch(self, limit: int, agora: datetime) -> list[EmailJob]:
        """
        Busca jobs elegiveis: pending e send_after nulo ou <= agora.

        Ordena por created_at (FIFO aproximado). O limit e sempre
        limitado a [1, MAX_LIMIT], independente do chamador.

        Raises:
            DatabaseError: Falha de leitura no Supabase
        """
        limit = clamp_limit(limit)
        agora_iso = iso_utc(agora)
        try:
            response = (
                self.table()
                .select("*")
                .eq("status", JobStatus.PENDING.value)
                .or_(f"send_after.is.null,send_after.lte.{agora_iso}")
                .order("created_at")
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise DatabaseError("Failed to fetch jobs", details={"error": str(e)}, original_error=e) from e

        return [EmailJob.from_dict(row) for row in response.data or []]

    async def count_by_status(self) -> dict[str, int]:
        """Conta jobs por status."""
        contagem: dict[str, int] = {}
        try:
            for status in JobStatus:
                response = (
                    self.table()
                    .select("id", count="exact")
                    .eq("status", status.value)
                    .execute()
                )
                contagem[status.value] = response.count or 0
        except Exception as e:
            raise DatabaseError("Erro ao contar jobs", original_error=e) from e
        return contagem

    # ------------------------------------------------------------------
    # Escrita
    # ------------------------------------------------------------------

    async def criar(self, data: dict) -> EmailJob:
        """
        Insere job cru, sempre como pending com attempts=0.

        Nenhuma validacao e feita aqui: jobs malformados ficam visiveis
        na tabela e falham no processamento.
        """
        agora = iso_utc()
        row = {
            **data,
            "status": JobStatus.PENDING.value,
            "attempts": 0,
            "created_at": data.get("created_at") or agora,
            "updated_at": agora,
        }
        try:
            response = self.table().insert(row).execute()
        except Exception as e:
            raise DatabaseError("Erro ao enfileirar email", original_error=e) from e
        if not response.data:
            raise DatabaseError("Insert em email_jobs nao retornou dados")
        job = EmailJob.from_dict(response.data[0])
        logger.info(f"Email enfileirado: {job.id}")
        return job

    async def enqueue(
        self,
        to_email: Optional[str],
        subject: Optional[str],
        text: Optional[str] = None,
        html: Optional[str] = None,
        sender: Optional[str] = None,
        reply_to: Optional[str] = None,
        send_after: Optional[datetime] = None,
        user_id: Optional[str] = None,
        template_key: Optional[str] = None,
    ) -> str:
        """
        Enfileira um email.

        Args:
            to_email: Destinatario
            subject: Assunto
            text: Corpo texto (opcional se html presente)
            html: Corpo HTML (opcional se text presente)
            sender: Sobrescreve o remetente padrao
            reply_to: Header Reply-To
            send_after: Nao enviar antes deste instante
            user_id: Usuario dono do email (informativo)
            template_key: Chave do template de origem (informativo)

        Returns:
            ID do job criado
        """
        payload = {
            k: v
            for k, v in {
                "to": to_email,
                "subject": subject,
                "text": text,
                "html": html,
                "from": sender,
                "replyTo": reply_to,
            }.items()
            if v is not None
        }
        job = await self.criar(
            {
                "to_email": to_email,
                "subject": subject,
                "payload": payload,
                "send_after": iso_utc(send_after) if send_after else None,
                "user_id": user_id,
                "template_key": template_key,
            }
        )
        return job.id

    async def try_claim(self, id: str, agora: datetime) -> Optional[EmailJob]:
        """
        Claim atomico: pending -> sending em um unico UPDATE condicional.

        Returns:
            O job reivindicado, ou None se outra invocacao chegou antes
        """
        try:
            response = (
                self.table()
                .update({"status": JobStatus.SENDING.value, "updated_at": iso_utc(agora)})
                .eq("id", id)
                .eq("status", JobStatus.PENDING.value)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Erro no claim do job {id}", original_error=e) from e

        if not response.data:
            return None
        return EmailJob.from_dict(response.data[0])

    async def _finalizar(self, id: str, data: dict, agora: datetime) -> bool:
        """UPDATE condicional a status = sending. Estados terminais nao sao tocados."""
        data = {**data, "updated_at": iso_utc(agora)}
        try:
            response = (
                self.table()
                .update(data)
                .eq("id", id)
                .eq("status", JobStatus.SENDING.value)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Erro ao finalizar job {id}", original_error=e) from e

        if not response.data:
            logger.warning(f"Job {id} nao estava em sending, finalizacao ignorada")
            return False
        return True

    async def mark_sent(
        self,
        id: str,
        agora: datetime,
        provider_message_id: Optional[str] = None,
    ) -> bool:
        """Marca job como enviado. attempts nao muda."""
        return await self._finalizar(
            id,
            {
                "status": JobStatus.SENT.value,
                "sent_at": iso_utc(agora),
                "last_error": None,
                "provider_message_id": provider_message_id,
            },
            agora,
        )

    async def mark_retry(
        self,
        id: str,
        attempts: int,
        send_after: datetime,
        error: str,
        agora: datetime,
    ) -> bool:
        """Devolve o job para pending com novo send_after."""
        return await self._finalizar(
            id,
            {
                "status": JobStatus.PENDING.value,
                "attempts": attempts,
                "send_after": iso_utc(send_after),
                "last_error": truncar_erro(error),
            },
            agora,
        )

    async def mark_failed(
        self,
        id: str,
        error: str,
        agora: datetime,
        attempts: Optional[int] = None,
    ) -> bool:
        """
        Marca job como falho permanentemente.

        attempts so e gravado quando a falha veio de uma tentativa
        de entrega (esgotamento); validacao e erros inesperados mantem
        o valor anterior.
        """
        data = {
            "status": JobStatus.FAILED.value,
            "last_error": truncar_erro(error),
        }
        if attempts is not None:
            data["attempts"] = attempts
        return await self._finalizar(id, data, agora)

    async def reap_stale_claims(
        self,
        cutoff: datetime,
        agora: datetime,
        max_reaps: int = EmailQueueConfig.MAX_REAPS,
    ) -> int:
        """
        Libera jobs presos em sending desde antes de cutoff.

        Cobre o crash entre claim e finalizacao. attempts nao muda;
        o reenvio pode duplicar um email ja aceito pelo provider
        (entrega at-least-once). Cada expiracao incrementa reap_count:
        ao atingir max_reaps o job vai para failed em vez de voltar
        para a fila, para nao ser reprocessado indefinidamente.

        Cada linha e liberada com UPDATE condicional (ainda sending e
        ainda expirada), entao reapers concorrentes nao duplicam a
        contagem.

        Returns:
            Quantidade de jobs liberados (devolvidos ou falhos)
        """
        cutoff_iso = iso_utc(cutoff)
        try:
            response = (
                self.table()
                .select("id, reap_count")
                .eq("status", JobStatus.SENDING.value)
                .lt("updated_at", cutoff_iso)
                .execute()
            )
        except Exception as e:
            raise DatabaseError("Erro ao buscar claims expirados", original_error=e) from e

        devolvidos = 0
        falhos = 0
        for row in response.data or []:
            reap_count = (row.get("reap_count") or 0) + 1
            if reap_count >= max_reaps:
                data = {
                    "status": JobStatus.FAILED.value,
                    "last_error": f"claim expired {reap_count} times",
                }
            else:
                data = {"status": JobStatus.PENDING.value, "last_error": "claim expired"}
            data.update({"reap_count": reap_count, "updated_at": iso_utc(agora)})

            try:
                update = (
                    self.table()
                    .update(data)
                    .eq("id", row["id"])
                    .eq("status", JobStatus.SENDING.value)
                    .lt("updated_at", cutoff_iso)
                    .execute()
                )
            except Exception as e:
                raise DatabaseError(f"Erro ao liberar claim do job {row['id']}", original_error=e) from e

            if not update.data:
                continue
            if data["status"] == JobStatus.FAILED.value:
                falhos += 1
                logger.error(f"Job {row['id']} falhou: claim expirou {reap_count} vezes")
            else:
                devolvidos += 1

        if devolvidos:
            logger.warning(f"{devolvidos} jobs presos em sending devolvidos para pending")
        return devolvidos + falhos


def clamp_limit(limit: Optional[int]) -> int:
    """Limita o tamanho do lote a [1, MAX_LIMIT]; None usa o padrao."""
    if limit is None:
        return EmailQueueConfig.DEFAULT_LIMIT
    return max(1, min(int(limit), EmailQueueConfig.MAX_LIMIT))
