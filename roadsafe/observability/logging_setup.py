"""
Logging setup for RoadSafe.

This module configures loguru sinks and routes stdlib logging
(uvicorn, aiohttp, aiomqtt) through loguru.
"""

from __future__ import annotations
import logging
import sys
from loguru import logger

# ---- stdlib logging → loguru 인터셉트 ----
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())

def _hook_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # 외부 라이브러리 로거도 loguru로 흡수
    for noisy in ("uvicorn", "uvicorn.access", "aiohttp", "aiomqtt", "asyncio"):
        l = logging.getLogger(noisy)
        l.handlers = [InterceptHandler()]
        l.propagate = False

# ---- 개발 콘솔 포맷(사람 친화, extra 미노출) ----
DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<cyan>{file}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

def setup_logging(log_level: str = "INFO", *, json_logs: bool = False) -> None:
    """
    loguru 로거를 초기화합니다.

    Args:
        log_level: 로그 레벨
        json_logs: True이면 JSON(serialize) 형식으로 stdout에 출력
    """
    logger.remove()  # 기본 sink 제거
    logger.configure(extra={"name": "roadsafe"})
    if json_logs:
        logger.add(
            sys.stdout,
            serialize=True,
            level=log_level.upper(),
            backtrace=False,
            diagnose=False,
            enqueue=True,
        )
    else:
        logger.add(
            sys.stdout,
            format=DEV_FORMAT,
            colorize=True,
            backtrace=True,
            diagnose=False,
            level=log_level.upper(),
            enqueue=False,    # 콘솔은 큐 불필요
        )
    _hook_stdlib_logging()

def get_logger(name: str = "roadsafe", **ctx):
    """선택적으로 컨텍스트를 바인딩한 logger 반환."""
    return logger.bind(name=name, **ctx)

