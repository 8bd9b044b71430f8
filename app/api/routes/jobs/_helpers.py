"""
Helpers compartilhados pelos sub-routers de jobs.
"""

import functools
import logging
from typing import Any, Callable, Coroutine

from fastapi.responses import JSONResponse

from app.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _resposta_erro(mensagem: str) -> JSONResponse:
    return JSONResponse(
        {"error": mensagem, "processed": 0, "sent": 0, "failed": 0},
        status_code=500,
    )


def job_endpoint(name: str):
    """
    Decorator DRY para endpoints de job.

    Encapsula o padrao try/except/JSONResponse comum aos handlers.
    Erro de configuracao ou de leitura vira 500 com contadores zerados
    (nenhum job foi tocado).

    Args:
        name: Nome do job para logging de erro.

    Uso:
        @router.post("/meu-job")
        @job_endpoint("meu-job")
        async def job_meu_job():
            # ... logica ...
            return {"ok": True, "processed": 0}
    """

    def decorator(
        func: Callable[..., Coroutine[Any, Any, dict | JSONResponse]],
    ) -> Callable[..., Coroutine[Any, Any, JSONResponse]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> JSONResponse:
            try:
                result = await func(*args, **kwargs)
                # Se o handler ja retornou JSONResponse, passar adiante
                if isinstance(result, JSONResponse):
                    return result
                # Caso contrario, encapsular dict em JSONResponse
                return JSONResponse(result)
            except ConfigurationError as e:
                logger.error(f"Job {name} abortado, configuracao ausente: {e.variavel}")
                return _resposta_erro(e.message)
            except Exception as e:
                logger.error(f"Erro no job {name}: {e}", exc_info=True)
                return _resposta_erro(getattr(e, "message", None) or str(e) or "Processing failed")

        return wrapper

    return decorator
