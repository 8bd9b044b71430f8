"""
Testes do MailgunProvider.

O cliente httpx é um AsyncMock; as respostas são httpx.Response reais
para que raise_for_status() e json() se comportem como em produção.
"""
import httpx
import pytest
from unittest.mock import AsyncMock

from app.core.exceptions import ConfigurationError
from app.services.email_providers import EmailMessage, MailgunProvider, ProviderType, get_provider

URL = "https://api.mailgun.net/v3/mg.example.com/messages"


def _response(status_code: int, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", URL), **kwargs)


@pytest.fixture
def http_client():
    client = AsyncMock(spec=httpx.AsyncClient)
    client.post.return_value = _response(200, json={"id": "<20260110.1@mg.example.com>", "message": "Queued. Thank you."})
    return client


@pytest.fixture
def mailgun(http_client):
    return MailgunProvider(
        api_key="key-123",
        domain="mg.example.com",
        default_sender="Ghoste <no-reply@mg.example.com>",
        http_client=http_client,
    )


class TestMailgunProvider:
    def test_messages_url(self, mailgun):
        assert mailgun.messages_url == URL

    def test_base_url_eu(self, http_client):
        provider = MailgunProvider("k", "mg.example.eu", "a@b.com", http_client, base_url="https://api.eu.mailgun.net/v3/")

        assert provider.messages_url == "https://api.eu.mailgun.net/v3/mg.example.eu/messages"

    @pytest.mark.asyncio
    async def test_envio_aceito(self, mailgun, http_client):
        resultado = await mailgun.send(EmailMessage(to="fan@example.com", subject="Oi", text="corpo"))

        assert resultado.success
        assert resultado.message_id == "<20260110.1@mg.example.com>"
        assert resultado.provider == ProviderType.MAILGUN.value

        args, kwargs = http_client.post.call_args
        assert args[0] == URL
        assert kwargs["auth"] == ("api", "key-123")
        assert kwargs["data"] == {
            "from": "Ghoste <no-reply@mg.example.com>",
            "to": "fan@example.com",
            "subject": "Oi",
            "text": "corpo",
        }

    @pytest.mark.asyncio
    async def test_overrides_no_formulario(self, mailgun, http_client):
        await mailgun.send(EmailMessage(
            to="fan@example.com",
            subject="Oi",
            html="<p>corpo</p>",
            sender="Banda <banda@example.com>",
            reply_to="contato@example.com",
        ))

        data = http_client.post.call_args.kwargs["data"]
        assert data["from"] == "Banda <banda@example.com>"
        assert data["h:Reply-To"] == "contato@example.com"
        assert data["html"] == "<p>corpo</p>"
        assert "text" not in data

    @pytest.mark.asyncio
    async def test_status_de_erro_com_json(self, mailgun, http_client):
        http_client.post.return_value = _response(401, json={"message": "Invalid private key"})

        resultado = await mailgun.send(EmailMessage(to="fan@example.com", subject="Oi", text="x"))

        assert not resultado.success
        assert resultado.error == "Mailgun 401: Invalid private key"

    @pytest.mark.asyncio
    async def test_status_de_erro_sem_json(self, mailgun, http_client):
        http_client.post.return_value = _response(502, text="Bad Gateway")

        resultado = await mailgun.send(EmailMessage(to="fan@example.com", subject="Oi", text="x"))

        assert resultado.error == "Mailgun 502: Bad Gateway"

    @pytest.mark.asyncio
    async def test_timeout(self, mailgun, http_client):
        http_client.post.side_effect = httpx.ReadTimeout("timeout")

        resultado = await mailgun.send(EmailMessage(to="fan@example.com", subject="Oi", text="x"))

        assert not resultado.success
        assert resultado.error == "mailgun_timeout"

    @pytest.mark.asyncio
    async def test_erro_de_conexao(self, mailgun, http_client):
        http_client.post.side_effect = httpx.ConnectError("refused")

        resultado = await mailgun.send(EmailMessage(to="fan@example.com", subject="Oi", text="x"))

        assert resultado.error == "mailgun_connect_error"

    @pytest.mark.asyncio
    async def test_resposta_malformada(self, mailgun, http_client):
        http_client.post.return_value = _response(200, text="<html>ok</html>")

        resultado = await mailgun.send(EmailMessage(to="fan@example.com", subject="Oi", text="x"))

        assert not resultado.success
        assert resultado.error.startswith("mailgun_invalid_response")

    @pytest.mark.asyncio
    async def test_resposta_json_nao_objeto(self, mailgun, http_client):
        http_client.post.return_value = _response(200, json=["lista"])

        resultado = await mailgun.send(EmailMessage(to="fan@example.com", subject="Oi", text="x"))

        assert resultado.error.startswith("mailgun_invalid_response")


class TestGetProvider:
    def test_cria_mailgun(self, settings, http_client):
        provider = get_provider(settings, http_client)

        assert isinstance(provider, MailgunProvider)
        assert provider.base_url == "https://api.mailgun.net/v3"
        assert provider.timeout == settings.MAILGUN_TIMEOUT_SECONDS

    @pytest.mark.parametrize("variavel", ["MAILGUN_API_KEY", "MAILGUN_DOMAIN", "MAIL_FROM"])
    def test_credencial_ausente(self, settings, http_client, variavel):
        with pytest.raises(ConfigurationError) as exc_info:
            get_provider(settings.model_copy(update={variavel: ""}), http_client)

        assert exc_info.value.variavel == variavel
