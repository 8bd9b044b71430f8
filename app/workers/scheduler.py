"""
Scheduler que dispara a fila de emails via HTTP.

Equivalente ao cron da plataforma: a cada minuto avalia os JOBS e faz
POST no endpoint correspondente. A fila tolera disparos sobrepostos,
entao um POST lento nao bloqueia o proximo tick.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

import httpx

from app.core.config import EmailQueueConfig, get_settings
from app.core.timezone import agora_utc

logger = logging.getLogger(__name__)

# Intervalo entre verificacoes do relogio
INTERVALO_SEGUNDOS = 1

# Referencias fortes aos disparos em andamento
_tasks: set[asyncio.Task] = set()

JOBS = [
    {
        "name": "processar_email_queue",
        "endpoint": "/jobs/email-queue",
        "schedule": EmailQueueConfig.SCHEDULE,  # A cada 2 minutos
    },
]


def parse_cron(schedule: str) -> dict:
    """Parse cron expression simples."""
    parts = schedule.split()
    if len(parts) != 5:
        raise ValueError(f"Cron inválido: {schedule}")
    return dict(zip(("minute", "hour", "day", "month", "weekday"), parts))


def matches_cron_field(field: str, value: int) -> bool:
    """
    Verifica se valor corresponde ao campo cron.

    Suporta: *, */N, listas (1,2,3), faixas (1-5) e valor exato.
    """
    if field == "*":
        return True

    if field.startswith("*/"):
        return value % int(field[2:]) == 0

    if "," in field:
        return any(matches_cron_field(parte, value) for parte in field.split(","))

    if "-" in field:
        inicio, fim = field.split("-", 1)
        return int(inicio) <= value <= int(fim)

    return int(field) == value


def should_run(schedule: str, now: datetime) -> bool:
    """Verifica se job deve executar no minuto de `now`."""
    try:
        cron = parse_cron(schedule)
        # Python: 0=seg ... 6=dom / Cron: 0=dom ... 6=sab
        cron_weekday = (now.weekday() + 1) % 7
        return (
            matches_cron_field(cron["minute"], now.minute)
            and matches_cron_field(cron["hour"], now.hour)
            and matches_cron_field(cron["day"], now.day)
            and matches_cron_field(cron["month"], now.month)
            and matches_cron_field(cron["weekday"], cron_weekday)
        )
    except ValueError as e:
        logger.error(f"Erro ao parsear cron {schedule}: {e}")
        return False


async def execute_job(
    job: dict,
    api_url: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """
    Dispara um job via POST.

    Returns:
        True se a API respondeu 200
    """
    url = f"{api_url or get_settings().EMAIL_QUEUE_API_URL}{job['endpoint']}"
    logger.info(f"Executando job: {job['name']} -> {url}")

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=300.0) as novo_client:
                response = await novo_client.post(url)
        else:
            response = await client.post(url)
    except httpx.TimeoutException:
        logger.error(f"Timeout ao executar job {job['name']}")
        return False
    except httpx.HTTPError as e:
        logger.error(f"Erro ao executar job {job['name']}: {e}")
        return False
    except Exception as e:
        logger.error(f"Erro inesperado ao executar job {job['name']}: {e}", exc_info=True)
        return False

    if response.status_code == 200:
        logger.info(f"Job {job['name']} executado: {response.text[:200]}")
        return True

    logger.error(f"Job {job['name']} falhou: {response.status_code} - {response.text[:500]}")
    return False


def jobs_do_minuto(now: datetime) -> list[dict]:
    """Jobs que devem disparar no minuto de `now`."""
    return [job for job in JOBS if should_run(job["schedule"], now)]


def disparar_job(job: dict, api_url: str) -> asyncio.Task:
    """
    Dispara o job em background sem bloquear o tick.

    A task fica em _tasks ate terminar; execute_job nunca levanta.
    """
    task = asyncio.create_task(execute_job(job, api_url), name=f"job:{job['name']}")
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)
    return task


async def scheduler_loop(max_ticks: Optional[int] = None):
    """
    Loop principal do scheduler.

    Args:
        max_ticks: Encerra apos N verificacoes (None = infinito)
    """
    api_url = get_settings().EMAIL_QUEUE_API_URL
    logger.info("Scheduler iniciado")
    logger.info(f"API URL: {api_url}")
    logger.info(f"{len(JOBS)} jobs configurados")

    last_minute = None
    ticks = 0

    while max_ticks is None or ticks < max_ticks:
        ticks += 1
        try:
            now = agora_utc()
            minuto = now.replace(second=0, microsecond=0)

            # Executar jobs apenas no início de cada minuto
            if minuto != last_minute:
                last_minute = minuto
                for job in jobs_do_minuto(now):
                    logger.info(f"Trigger: {job['name']} (schedule: {job['schedule']})")
                    disparar_job(job, api_url)

            await asyncio.sleep(INTERVALO_SEGUNDOS)

        except asyncio.CancelledError:
            logger.info("Scheduler interrompido")
            raise
        except Exception as e:
            logger.error(f"Erro no scheduler: {e}", exc_info=True)
            await asyncio.sleep(10 * INTERVALO_SEGUNDOS)
