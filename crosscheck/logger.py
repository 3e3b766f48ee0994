"""Loguru setup shared by the service, its clients and the CLI entry point."""

from __future__ import annotations

import os
import re
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger as _logger

LOG_DIR_ENV = "CROSSCHECK_LOG_DIR"
LOG_LEVEL_ENV = "CROSSCHECK_LOG_LEVEL"
LOG_JSON_ENV = "CROSSCHECK_LOG_JSON"
DEFAULT_LOG_DIR = Path(__file__).resolve().parent / "logs"

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    "{extra[context]}"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}{extra[context]}"

# Bearer headers, OpenAI/OpenRouter style keys and GitHub tokens.
_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+", re.IGNORECASE),
    re.compile(r"\b(sk-(?:or-)?)[A-Za-z0-9_\-]{8,}"),
    re.compile(r"\b(gh[pousr]_)[A-Za-z0-9]{8,}"),
    re.compile(r"\b(github_pat_)[A-Za-z0-9_]{8,}"),
)

_configured = False


def redact(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1***", text)
    return text


def _patch_record(record: dict) -> None:
    record["message"] = redact(record["message"])
    extra = {key: value for key, value in record["extra"].items() if key != "context"}
    record["extra"]["context"] = (
        " | " + " ".join(f"{key}={value}" for key, value in sorted(extra.items())) if extra else ""
    )


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def configure_logger(*, log_dir: str | Path | None = None, level: str | None = None) -> None:
    """Install the console and rotating file sinks once per process.

    Console output goes to stderr at ``CROSSCHECK_LOG_LEVEL`` (INFO by default).
    The file sink records DEBUG and above under ``CROSSCHECK_LOG_DIR``, as JSON
    lines when ``CROSSCHECK_LOG_JSON`` is set. Secrets are masked in every sink.
    """

    global _configured
    if _configured:
        return

    if log_dir is None:
        log_dir = os.getenv(LOG_DIR_ENV) or DEFAULT_LOG_DIR
    target_dir = Path(log_dir).expanduser().resolve()
    target_dir.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    _logger.configure(patcher=_patch_record)
    _logger.add(
        sys.stderr,
        level=level or os.getenv(LOG_LEVEL_ENV, "INFO"),
        format=_CONSOLE_FORMAT,
        colorize=sys.stderr.isatty(),
    )
    _logger.add(
        target_dir / "crosscheck_{time:YYYY-MM-DD}.log",
        level="DEBUG",
        format=_FILE_FORMAT,
        serialize=_env_flag(LOG_JSON_ENV),
        rotation="50 MB",
        retention="10 days",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _configured = True


def get_logger(*, log_dir: str | Path | None = None, level: str | None = None):
    configure_logger(log_dir=log_dir, level=level)
    return _logger


def log_with_context(logger_instance, **context: Any) -> Any:
    """Bind review context (generation_model, strategy, reviewer_model...) to a logger.

    ``None`` values are dropped so optional fields do not clutter the output.
    """
    return logger_instance.bind(**{key: value for key, value in context.items() if value is not None})


@contextmanager
def log_timing(logger_instance, operation: str, **context: Any) -> Iterator[Any]:
    """Log how long the wrapped block took, or how long it ran before failing."""

    ctx_logger = log_with_context(logger_instance, **context)
    started = time.perf_counter()
    ctx_logger.debug(f"Starting {operation}")
    try:
        yield ctx_logger
    except Exception as exc:
        ctx_logger.error(f"Failed {operation} after {time.perf_counter() - started:.3f}s: {exc}")
        raise
    ctx_logger.debug(f"Completed {operation} in {time.perf_counter() - started:.3f}s")


def log_success(logger_instance, message: str, **context: Any) -> None:
    log_with_context(logger_instance, **context).info(f"=== SUCCESS: {message} ===")


def log_failure(logger_instance, message: str, error: BaseException | None = None, **context: Any) -> None:
    ctx_logger = log_with_context(logger_instance, **context)
    if error is None:
        ctx_logger.error(f"=== FAILURE: {message} ===")
    else:
        ctx_logger.error(f"=== FAILURE: {message} | {type(error).__name__}: {error} ===")
