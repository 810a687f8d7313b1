import logging
from concurrent.futures import ThreadPoolExecutor

from django.conf import settings
from django.db import close_old_connections, transaction

logger = logging.getLogger(__name__)

_executor = None


def _get_executor():
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=settings.COINCHAT_BACKGROUND_WORKERS,
            thread_name_prefix="coinchat-bg",
        )
    return _executor


def _run_safely(func, args, kwargs):
    name = getattr(func, "__name__", repr(func))
    try:
        func(*args, **kwargs)
    except Exception as e:
        logger.error(f"Background task {name} failed: {e}", exc_info=True)
    finally:
        if not settings.COINCHAT_RUN_TASKS_INLINE:
            close_old_connections()


def run_in_background(func, *args, **kwargs):
    """
    요청과 분리된 작업 실행 (fire-and-forget).
    실패는 로그로만 남고 호출자에게 전달되지 않는다.
    """
    if settings.COINCHAT_RUN_TASKS_INLINE:
        _run_safely(func, args, kwargs)
        return
    _get_executor().submit(_run_safely, func, args, kwargs)


def run_after_commit(func, *args, **kwargs):
    """현재 트랜잭션이 커밋된 뒤에 백그라운드 작업을 예약한다."""
    transaction.on_commit(lambda: run_in_background(func, *args, **kwargs))
