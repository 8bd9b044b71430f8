"""
Entry point para executar workers.

Uso:
    python -m app.workers email_queue [limit]   # uma passada da fila
    python -m app.workers scheduler             # dispara a fila a cada 2 min
"""
import asyncio
import json
import sys
import logging

from app.core.exceptions import ConfigurationError, DatabaseError
from app.core.logging import setup_logging

logger = logging.getLogger(__name__)

USO = "Uso: python -m app.workers <email_queue [limit] | scheduler>"


def _executar_email_queue(argv: list[str]) -> int:
    from app.services.email_queue import executar_email_queue

    try:
        limite = int(argv[0]) if argv else None
    except ValueError:
        print(f"limit invalido: {argv[0]}")
        return 1

    try:
        summary = asyncio.run(executar_email_queue(limite=limite))
    except (ConfigurationError, DatabaseError) as e:
        logger.error(f"Fila de emails abortada: {e.message}")
        print(json.dumps({"error": e.message, "processed": 0, "sent": 0, "failed": 0}))
        return 1

    print(json.dumps(summary.to_dict()))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Executa worker baseado no argumento."""
    argv = sys.argv[1:] if argv is None else argv
    setup_logging()

    if not argv:
        print(USO)
        return 1

    worker_name, resto = argv[0], argv[1:]

    if worker_name == "email_queue":
        return _executar_email_queue(resto)
    if worker_name == "scheduler":
        from app.workers.scheduler import scheduler_loop
        logger.info("Iniciando scheduler...")
        try:
            asyncio.run(scheduler_loop())
        except KeyboardInterrupt:
            logger.info("Scheduler encerrado")
        return 0

    logger.error(f"Worker desconhecido: {worker_name}")
    print(USO)
    return 1


if __name__ == "__main__":
    sys.exit(main())
