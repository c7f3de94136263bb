"""
Logging setup for host applications embedding the orchestrator.

Components never configure sinks themselves; they receive a loguru logger
(the module-level ``logger`` by default) and log with a bracketed component
prefix. The host calls configure_logging() once at startup.
"""
import logging
import os
import sys

from loguru import logger


LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def detect_debug_mode() -> bool:
    """
    Detect if debug mode is enabled via environment variables or CLI flags

    Debug mode can be enabled via:
    - Environment variable: DEBUG=1
    - Environment variable: LOG_LEVEL=DEBUG
    - Command-line flag: --debug
    """
    env_debug = os.getenv("DEBUG", "0") == "1"
    env_log_level = os.getenv("LOG_LEVEL", "INFO").upper() == "DEBUG"
    cli_debug = "--debug" in sys.argv

    return env_debug or env_log_level or cli_debug


class InterceptHandler(logging.Handler):
    """Route standard logging records (httpx, asyncio) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure loguru with a unified format

    Format: HH:MM:SS.mmm | LEVEL | module:function:line - message
    Example: 21:09:07.065 | INFO     | tts_orchestrator.core.adapter_registry:register:71 - [Registry] Registered adapter: piper

    Args:
        log_level: Log level to use (DEBUG or INFO)
    """
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=log_level, colorize=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # httpx logs every request at INFO
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"[Logging] Configured (level: {log_level})")
