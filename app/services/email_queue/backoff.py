"""
Politica de backoff dos retries.

Tabela fixa [1, 5, 15, 60, 360] minutos indexada pela quantidade de
tentativas apos a falha; acima do tamanho da tabela repete o ultimo
valor. Com MAX_ATTEMPTS = 5 o job falha de vez na quinta falha.
"""
import random
from datetime import datetime, timedelta
from typing import Optional, Sequence

from app.core.config import EmailQueueConfig

BACKOFF_MINUTES: tuple[int, ...] = EmailQueueConfig.BACKOFF_MINUTES
MAX_ATTEMPTS: int = EmailQueueConfig.MAX_ATTEMPTS


def next_delay_minutes(
    attempts_after_failure: int,
    tabela: Sequence[int] = BACKOFF_MINUTES,
) -> int:
    """
    Minutos de espera ate o proximo retry.

    Args:
        attempts_after_failure: attempts ja incrementado (1 = primeira falha)
        tabela: Tabela de backoff

    Returns:
        tabela[n-1], ou o ultimo valor se n passar do tamanho da tabela
    """
    indice = min(max(attempts_after_failure, 1) - 1, len(tabela) - 1)
    return tabela[indice]


def should_retry(attempts_after_failure: int, max_attempts: int = MAX_ATTEMPTS) -> bool:
    """True enquanto ainda ha tentativas disponiveis."""
    return attempts_after_failure < max_attempts


def next_send_after(
    agora: datetime,
    attempts_after_failure: int,
    jitter_ratio: float = 0.0,
    rng: Optional[random.Random] = None,
) -> datetime:
    """
    Calcula o send_after do retry.

    Args:
        agora: Instante da falha (relogio do worker)
        attempts_after_failure: attempts ja incrementado
        jitter_ratio: 0.0 = deterministico; 0.2 = espera ate 20% maior
        rng: Gerador aleatorio (testes)

    Returns:
        agora + delay
    """
    minutos = float(next_delay_minutes(attempts_after_failure))
    if jitter_ratio > 0:
        rng = rng or random.Random()
        minutos *= 1 + rng.uniform(0, min(jitter_ratio, 1.0))
    return agora + timedelta(minutes=minutos)
