"""
Configuração global de testes - Fixtures compartilhadas.

Este arquivo contém fixtures reutilizáveis em todos os testes do projeto.
Evita duplicação de código de mock em módulos individuais.

O Supabase é substituído por FakeSupabase: uma tabela em memória que
avalia de verdade a cadeia de filtros do PostgREST (eq, lt, lte, or_,
order, limit). Assim o claim condicional e a finalização condicional
são testados pelo comportamento, não pela chamada.
"""

import random
import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4
from typing import Any, Callable, Optional

from app.core.config import Settings
from app.core.timezone import TZ_UTC, parse_iso
from app.repositories.email_job import EmailJobRepository
from app.services.email_providers import DeliveryResult, EmailMessage, EmailProvider
from app.services.email_queue import EmailQueueDeps


# =============================================================================
# FAKES - Supabase em memória
# =============================================================================


def _comparavel(valor: Any) -> Any:
    """Timestamps ISO viram datetime para comparação."""
    if isinstance(valor, str):
        try:
            return parse_iso(valor)
        except ValueError:
            return valor
    return valor


def _filtro(coluna: str, operador: str, esperado: Any) -> Callable[[dict], bool]:
    def _aplicar(row: dict) -> bool:
        atual = row.get(coluna)
        if operador == "eq":
            return atual == esperado
        if operador == "is":
            return atual is None if esperado in (None, "null") else atual == esperado
        if atual is None:
            return False
        a, b = _comparavel(atual), _comparavel(esperado)
        if operador == "lt":
            return a < b
        if operador == "lte":
            return a <= b
        if operador == "gt":
            return a > b
        if operador == "gte":
            return a >= b
        raise ValueError(f"Operador nao suportado: {operador}")

    return _aplicar


class FakeResponse:
    """Simula APIResponse do postgrest."""

    def __init__(self, data: list[dict], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Query builder encadeável sobre uma tabela em memória."""

    def __init__(self, db: "FakeSupabase", table_name: str):
        self._db = db
        self._table_name = table_name
        self._op = "select"
        self._payload: Any = None
        self._filters: list[Callable[[dict], bool]] = []
        self._order: Optional[tuple[str, bool]] = None
        self._limit: Optional[int] = None
        self._count: Optional[str] = None

    # Operações
    def select(self, *columns, count: Optional[str] = None):
        self._op = "select"
        self._count = count
        return self

    def insert(self, data):
        self._op = "insert"
        self._payload = data
        return self

    def update(self, data: dict):
        self._op = "update"
        self._payload = data
        return self

    # Filtros
    def eq(self, coluna: str, valor: Any):
        self._filters.append(_filtro(coluna, "eq", valor))
        return self

    def lt(self, coluna: str, valor: Any):
        self._filters.append(_filtro(coluna, "lt", valor))
        return self

    def lte(self, coluna: str, valor: Any):
        self._filters.append(_filtro(coluna, "lte", valor))
        return self

    def or_(self, expressao: str):
        """Aceita o formato PostgREST: 'col.op.valor,col.op.valor'."""
        alternativas = []
        for parte in expressao.split(","):
            coluna, operador, valor = parte.split(".", 2)
            alternativas.append(_filtro(coluna, operador, valor))
        self._filters.append(lambda row: any(f(row) for f in alternativas))
        return self

    def order(self, coluna: str, desc: bool = False):
        self._order = (coluna, desc)
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def execute(self) -> FakeResponse:
        self._db.calls.append((self._table_name, self._op))
        if self._op in self._db.fail_on:
            raise Exception(f"Database error ({self._op})")

        rows = self._db.rows(self._table_name)

        if self._op == "insert":
            novos = self._payload if isinstance(self._payload, list) else [self._payload]
            inseridos = []
            for novo in novos:
                row = {"id": str(uuid4()), **novo}
                rows.append(row)
                inseridos.append(dict(row))
            return FakeResponse(inseridos)

        selecionados = [row for row in rows if all(f(row) for f in self._filters)]

        if self._op == "update":
            for row in selecionados:
                row.update(self._payload)
            return FakeResponse([dict(row) for row in selecionados])

        if self._order:
            coluna, desc = self._order
            selecionados.sort(key=lambda r: _comparavel(r.get(coluna)) or datetime.min.replace(tzinfo=TZ_UTC), reverse=desc)
        total = len(selecionados)
        if self._limit is not None:
            selecionados = selecionados[: self._limit]
        return FakeResponse(
            [dict(row) for row in selecionados],
            count=total if self._count else None,
        )


class FakeSupabase:
    """
    Cliente Supabase em memória.

    Attributes:
        tables: Linhas por tabela (dicts mutáveis)
        fail_on: Operações que devem levantar erro ("select", "update", "insert")
        calls: Histórico (tabela, operação) de cada execute()
    """

    def __init__(self, tables: Optional[dict[str, list[dict]]] = None):
        self.tables: dict[str, list[dict]] = tables or {}
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def rows(self, table_name: str) -> list[dict]:
        return self.tables.setdefault(table_name, [])

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


# =============================================================================
# FAKES - Relógio e provider
# =============================================================================


class FakeClock:
    """Relógio controlável (UTC)."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeProvider(EmailProvider):
    """
    Provider que registra as mensagens e devolve resultados programados.

    Sem resultados programados, todo envio é aceito.
    """

    def __init__(self, resultados: Optional[list[DeliveryResult]] = None):
        self.resultados = list(resultados or [])
        self.enviados: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> DeliveryResult:
        self.enviados.append(message)
        if self.resultados:
            return self.resultados.pop(0)
        return DeliveryResult.ok(f"<{uuid4()}@mg.test>", provider="fake")


# =============================================================================
# MOCK FACTORIES
# =============================================================================


def criar_mock_http_response(
    status_code: int = 200,
    json_data: dict[str, Any] | list[Any] | None = None,
    text: str = "",
) -> MagicMock:
    """
    Cria mock de resposta HTTP (httpx.Response).

    Args:
        status_code: HTTP status code
        json_data: Dados JSON a retornar
        text: Texto raw da resposta

    Returns:
        MagicMock simulando httpx.Response
    """
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = json_data if json_data is not None else {}
    mock.text = text
    mock.is_success = 200 <= status_code < 300
    mock.is_error = status_code >= 400
    return mock


def criar_job_row(**overrides) -> dict:
    """Linha de email_jobs válida e elegível."""
    row = {
        "id": str(uuid4()),
        "to_email": "fan@example.com",
        "subject": "Novo lançamento",
        "payload": {"to": "fan@example.com", "subject": "Novo lançamento", "text": "Ouça agora"},
        "status": "pending",
        "attempts": 0,
        "reap_count": 0,
        "send_after": None,
        "last_error": None,
        "created_at": "2026-01-10T11:00:00+00:00",
        "updated_at": "2026-01-10T11:00:00+00:00",
        "sent_at": None,
    }
    row.update(overrides)
    return row


# =============================================================================
# FIXTURES
# =============================================================================

AGORA = datetime(2026, 1, 10, 12, 0, tzinfo=TZ_UTC)


@pytest.fixture
def agora() -> datetime:
    """Instante fixo usado como 'agora' nos testes da fila."""
    return AGORA


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(AGORA)


@pytest.fixture
def settings() -> Settings:
    """Settings com toda configuração obrigatória preenchida (sem .env)."""
    return Settings(
        _env_file=None,
        SUPABASE_URL="https://projeto.supabase.co",
        SUPABASE_SERVICE_KEY="service-key",
        MAILGUN_API_KEY="key-123",
        MAILGUN_DOMAIN="mg.example.com",
        MAIL_FROM="Ghoste <no-reply@mg.example.com>",
        EMAIL_QUEUE_CLAIM_TIMEOUT_MINUTES=15,
        EMAIL_QUEUE_BACKOFF_JITTER=0.0,
    )


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def repo(fake_db) -> EmailJobRepository:
    return EmailJobRepository(fake_db)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def provider_factory() -> Callable[..., FakeProvider]:
    """
    Factory de providers com resultados programados.

    Uso:
        def test_algo(provider_factory):
            provider = provider_factory([DeliveryResult.falha("Mailgun 500", "mailgun")])
    """
    return FakeProvider


@pytest.fixture
def deps_factory(settings, clock) -> Callable[..., EmailQueueDeps]:
    """Factory de EmailQueueDeps (ex: duas invocações sobre o mesmo banco)."""

    def _criar(db: FakeSupabase, provider: EmailProvider, **overrides) -> EmailQueueDeps:
        kwargs = {
            "store": EmailJobRepository(db),
            "provider": provider,
            "settings": settings,
            "clock": clock,
            "rng": random.Random(42),
        }
        kwargs.update(overrides)
        return EmailQueueDeps(**kwargs)

    return _criar


@pytest.fixture
def deps(repo, provider, settings, clock) -> EmailQueueDeps:
    """Dependências do worker com fakes (sem patch)."""
    return EmailQueueDeps(
        store=repo,
        provider=provider,
        settings=settings,
        clock=clock,
        rng=random.Random(42),
    )


@pytest.fixture
def inserir_job(fake_db) -> Callable[..., dict]:
    """
    Insere uma linha em email_jobs e devolve a referência viva.

    Uso:
        def test_algo(inserir_job):
            row = inserir_job(attempts=2)
    """

    def _inserir(**overrides) -> dict:
        row = criar_job_row(**overrides)
        fake_db.rows("email_jobs").append(row)
        return row

    return _inserir


@pytest.fixture
def mock_httpx_client():
    """
    Mock do httpx.AsyncClient injetado no provider.

    Uso:
        def test_envio(mock_httpx_client):
            mock_httpx_client.post.return_value = criar_mock_http_response(200, {"id": "<1@mg>"})
    """
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    mock_client.post.return_value = criar_mock_http_response(200, {"id": "<1@mg>", "message": "Queued"})
    return mock_client
