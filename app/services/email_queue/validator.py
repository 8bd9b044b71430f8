"""
Validacao estrutural de jobs antes do envio.

Falha aqui e permanente: o job vai direto para failed, sem
tentativa de entrega e sem incrementar attempts.
"""
import re
from dataclasses import dataclass
from typing import Optional

from app.repositories.email_job import EmailJob

# local@dominio.tld, sem espacos e com um unico @
EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass
class ValidationResult:
    """Resultado da validacao."""
    valid: bool
    error: Optional[str] = None


def email_valido(endereco: Optional[str]) -> bool:
    """Validacao minima de endereco de email."""
    if not endereco or not isinstance(endereco, str):
        return False
    return bool(EMAIL_REGEX.match(endereco.strip()))


def validate_job(job: EmailJob) -> ValidationResult:
    """
    Valida o job.

    Regras:
    - payload deve ser um objeto
    - destinatario (payload.to ou to_email) presente e bem formado
    - assunto (payload.subject ou subject) presente
    - payload.text ou payload.html presente

    Returns:
        ValidationResult com o primeiro erro encontrado
    """
    if not isinstance(job.payload, dict):
        return ValidationResult(False, "Missing or invalid payload object")

    recipient = job.recipient
    if not recipient or not isinstance(recipient, str):
        return ValidationResult(False, "Missing recipient (payload.to or to_email)")
    if not email_valido(recipient):
        return ValidationResult(False, f"Invalid recipient address: {recipient[:100]}")

    subject = job.resolved_subject
    if not subject or not isinstance(subject, str) or not subject.strip():
        return ValidationResult(False, "Missing subject (payload.subject or subject)")

    if not job.text and not job.html:
        return ValidationResult(False, "Must have either payload.text or payload.html")

    return ValidationResult(True)
