from __future__ import annotations

import functools
import logging
import time
from typing import Any, Awaitable, Callable, Dict, TypeVar, cast

from bizmanager.core.exceptions import ApplicationError
from bizmanager.core.security import utcnow
from bizmanager.utils.monitoring import record_auth_event

audit_logger = logging.getLogger("bizmanager.audit")

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def audited(event: str) -> Callable[[F], F]:
    """Record the outcome of an auth operation for audit and metrics.

    Arguments are never captured: they carry passwords and reset tokens.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            metadata: Dict[str, Any] = {
                "event": event,
                "operation": func.__qualname__,
                "timestamp": utcnow().isoformat(),
            }
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except ApplicationError as exc:
                metadata.update(outcome="rejected", code=exc.code, duration_ms=_elapsed_ms(started))
                audit_logger.info(event, extra=metadata)
                record_auth_event(event, "rejected")
                raise
            except Exception as exc:
                metadata.update(outcome="error", error=repr(exc), duration_ms=_elapsed_ms(started))
                audit_logger.error(event, extra=metadata)
                record_auth_event(event, "error")
                raise

            metadata.update(outcome="success", duration_ms=_elapsed_ms(started))
            audit_logger.info(event, extra=metadata)
            record_auth_event(event, "success")
            return result

        return cast(F, wrapper)

    return decorator


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
