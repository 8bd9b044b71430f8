"""
Módulo centralizado para tratamento de timezone.

O projeto usa UTC em todo lugar: banco de dados, logs e agendamento
de retries (send_after).

Convenções:
- `agora_utc()`: relógio padrão do worker
- `para_utc(dt)`: Converter datetime para UTC
- `iso_utc(dt)`: Formatar para gravar no banco
- `parse_iso(valor)`: Ler timestamps vindos do Supabase
"""

from datetime import datetime, timezone
from typing import Optional


TZ_UTC = timezone.utc


def agora_utc() -> datetime:
    """
    Retorna datetime atual em UTC (timezone-aware).

    Use para:
    - Armazenar no banco de dados
    - Logs e timestamps
    - Comparações com dados do banco

    Returns:
        datetime em UTC com tzinfo
    """
    return datetime.now(TZ_UTC)


def para_utc(dt: datetime) -> datetime:
    """
    Converte datetime para UTC.

    Args:
        dt: datetime a converter (pode ser naive ou aware)

    Returns:
        datetime em UTC
    """
    if dt.tzinfo is None:
        # Assume que datetime naive já está em UTC
        dt = dt.replace(tzinfo=TZ_UTC)
    return dt.astimezone(TZ_UTC)


def iso_utc(dt: datetime | None = None) -> str:
    """
    Retorna datetime em formato ISO 8601 UTC.

    Conveniente para inserir no banco de dados.

    Args:
        dt: datetime a formatar (padrão: agora)

    Returns:
        String ISO 8601 em UTC
    """
    if dt is None:
        dt = agora_utc()
    return para_utc(dt).isoformat()


def parse_iso(valor: Optional[str]) -> Optional[datetime]:
    """
    Converte string ISO 8601 (formato do PostgREST) em datetime UTC.

    Aceita sufixo 'Z'. Retorna None para valores vazios.
    """
    if not valor:
        return None
    if valor.endswith("Z"):
        valor = valor[:-1] + "+00:00"
    return para_utc(datetime.fromisoformat(valor))
