"""
Testes do validador de jobs da fila de emails.
"""
import pytest

from app.repositories.email_job import EmailJob
from app.services.email_queue.validator import email_valido, validate_job


def _job(**kwargs) -> EmailJob:
    data = {"id": "job-1", "status": "pending"}
    data.update(kwargs)
    return EmailJob.from_dict(data)


class TestEmailValido:
    @pytest.mark.parametrize(
        "endereco",
        ["fan@example.com", "a.b+tag@sub.dominio.com.br", "  fan@example.com  "],
    )
    def test_validos(self, endereco):
        assert email_valido(endereco)

    @pytest.mark.parametrize(
        "endereco",
        [None, "", "sem-arroba", "fan@localhost", "fan @example.com", "a@b@c.com", "@example.com"],
    )
    def test_invalidos(self, endereco):
        assert not email_valido(endereco)


class TestValidateJob:
    def test_job_valido_com_text(self):
        resultado = validate_job(_job(payload={"to": "fan@example.com", "subject": "Oi", "text": "corpo"}))

        assert resultado.valid
        assert resultado.error is None

    def test_job_valido_so_com_html_e_colunas_legadas(self):
        resultado = validate_job(
            _job(to_email="fan@example.com", subject="Oi", payload={"html": "<p>corpo</p>"})
        )

        assert resultado.valid

    def test_payload_ausente(self):
        resultado = validate_job(_job(to_email="fan@example.com", subject="Oi", payload=None))

        assert not resultado.valid
        assert resultado.error == "Missing or invalid payload object"

    def test_payload_nao_objeto(self):
        resultado = validate_job(_job(payload="texto"))

        assert resultado.error == "Missing or invalid payload object"

    def test_sem_destinatario(self):
        resultado = validate_job(_job(payload={"subject": "Oi", "text": "x"}))

        assert resultado.error == "Missing recipient (payload.to or to_email)"

    def test_destinatario_malformado(self):
        resultado = validate_job(_job(payload={"to": "nao-e-email", "subject": "Oi", "text": "x"}))

        assert not resultado.valid
        assert resultado.error.startswith("Invalid recipient address")

    @pytest.mark.parametrize("subject", [None, "", "   "])
    def test_sem_assunto(self, subject):
        resultado = validate_job(_job(payload={"to": "fan@example.com", "subject": subject, "text": "x"}))

        assert resultado.error == "Missing subject (payload.subject or subject)"

    def test_sem_corpo(self):
        resultado = validate_job(_job(payload={"to": "fan@example.com", "subject": "Oi"}))

        assert resultado.error == "Must have either payload.text or payload.html"

    def test_corpo_vazio_conta_como_ausente(self):
        resultado = validate_job(_job(payload={"to": "fan@example.com", "subject": "Oi", "text": "", "html": ""}))

        assert not resultado.valid
