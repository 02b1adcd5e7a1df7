"""
Error types and the error-logging helpers used across the service.
"""

import asyncio
import functools
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AgentAnalyticsError(Exception):
    """Base class for errors raised by the service."""


class ConfigError(AgentAnalyticsError):
    """Missing or malformed environment configuration."""


class MetricsConfigError(ConfigError):
    """metrics.yaml could not be loaded into metric descriptors."""


class SlackDeliveryError(AgentAnalyticsError):
    """The webhook rejected the digest."""


def handle_error(error: BaseException, context: str = "General", **metadata: Any) -> None:
    """Logs an error with its context, metadata (as JSON) and stack trace."""
    message = f"{context} Error: {error}"
    if metadata:
        message = f"{message} {json.dumps(metadata, default=str)}"
    logger.error(
        message,
        exc_info=(type(error), error, error.__traceback__),
    )


def _describe_argument(arg: Any) -> Any:
    # keep objects and callables out of the logs
    if isinstance(arg, (str, int, float, bool)) or arg is None:
        return arg
    return "[Complex Object]"


def log_errors(context: str = "Async") -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for coroutines: logs any exception with `context` and the
    (sanitized) call arguments, then re-raises it.
    """
    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await fn(*args, **kwargs)
            except Exception as e:
                handle_error(
                    e,
                    context,
                    arguments=[_describe_argument(a) for a in args],
                    keyword_arguments={k: _describe_argument(v) for k, v in kwargs.items()},
                )
                raise
        return wrapper
    return decorator


def _excepthook(exc_type, exc_value, exc_traceback) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    handle_error(exc_value, "Uncaught Exception")


def asyncio_exception_handler(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    """Logs failures of tasks nobody awaited; the loop keeps running."""
    error = context.get("exception")
    if error is None:
        error = RuntimeError(context.get("message", "Unhandled asyncio error"))
    handle_error(error, "Unhandled Task Failure", message=context.get("message"))


def install_global_error_handlers(loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
    """
    Routes uncaught exceptions through the service logger. The process still
    terminates on an uncaught exception in the main thread.
    """
    sys.excepthook = _excepthook
    if loop is not None:
        loop.set_exception_handler(asyncio_exception_handler)
