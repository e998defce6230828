"""Centralized logging service using loguru."""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from deadline.config import settings

LOG_DIR = Path(settings.log_dir)
LOG_DIR.mkdir(parents=True, exist_ok=True)

logger.remove()

logger.add(
    sys.stderr,
    format="<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | <cyan>{name}</cyan> - <level>{message}</level>",
    level=settings.app_log_level.upper(),
    colorize=True,
)

logger.add(
    LOG_DIR / "deadline_{time:YYYY-MM-DD}.log",
    format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {name}:{line} - {message}",
    level="DEBUG",
    rotation="00:00",
    retention="7 days",
    compression="zip",
)

for logger_name in ("uvicorn.access", "httpx", "httpcore", "openai", "hpack"):
    logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())


def _fields(values: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in values.items() if value is not None)


def log_llm_call(
    model: str,
    caller: str,
    *,
    event_id: Optional[str] = None,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    error: Optional[str] = None,
) -> None:
    """One completion request, tagged with the event it was made for."""
    line = _fields(
        {
            "event": event_id,
            "caller": caller,
            "model": model,
            "tokens": f"{input_tokens}+{output_tokens}",
            "ms": duration_ms,
        }
    )
    if error:
        logger.error(f"LLM_CALL_FAILED {line} error={error!r}")
    else:
        logger.info(f"LLM_CALL {line}")


def log_pipeline_stage(event_id: str, stage: str, status: str, **data: Any) -> None:
    """Stage transition of a details or updates run; failures log at ERROR."""
    line = _fields({"event": event_id, "stage": stage, "status": status, **data})
    if status == "failed":
        logger.error(f"STAGE {line}")
    else:
        logger.info(f"STAGE {line}")


def log_db_operation(
    operation: str,
    table: str,
    event_id: Optional[str] = None,
    *,
    rows: Optional[int] = None,
    error: Optional[str] = None,
) -> None:
    line = _fields({"op": operation, "table": table, "event": event_id, "rows": rows})
    if error:
        logger.error(f"DB_FAILED {line} error={error!r}")
    else:
        logger.debug(f"DB {line}")
