"""
Fabrica de clientes HTTP.

Centraliza a configuracao do httpx usada nas chamadas externas:
- Timeout explicito em todas as fases da requisicao
- Connection pooling configuravel
- HTTP/2 multiplexing
- Headers padrao

Cada invocacao do worker cria o seu cliente e o fecha ao final
(sem singleton de modulo).
"""

import httpx
import logging

logger = logging.getLogger(__name__)


def criar_http_client(timeout_segundos: float = 15.0) -> httpx.AsyncClient:
    """
    Cria cliente HTTP assincrono.

    Args:
        timeout_segundos: Timeout de leitura/escrita (connect e pool usam
            valores menores fixos)

    Returns:
        httpx.AsyncClient; o chamador deve fechar (async with ou aclose)
    """
    return httpx.AsyncClient(
        # Timeouts
        timeout=httpx.Timeout(
            connect=min(10.0, timeout_segundos),  # Timeout para estabelecer conexão
            read=timeout_segundos,  # Timeout para leitura
            write=timeout_segundos,  # Timeout para escrita
            pool=5.0,  # Timeout para obter conexão do pool
        ),
        # Connection pooling
        limits=httpx.Limits(
            max_connections=20,
            max_keepalive_connections=5,
            keepalive_expiry=30.0,
        ),
        # HTTP/2 para multiplexing
        http2=True,
        # Headers padrão
        headers={
            "User-Agent": "Email-Queue-Worker/1.0",
        },
    )
