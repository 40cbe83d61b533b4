"""
Utility decorators for operation logging.
"""

import functools
import inspect
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

_CONTEXT_PARAMS = (
    "order",
    "asset_id",
    "asset_ids",
    "amount",
    "quantity",
    "price",
    "new_starting_balance",
)


def _serialize_parameter_value(value: Any) -> Any:
    """Serialize parameter value for logging."""
    if hasattr(value, "to_log_context"):
        return value.to_log_context()
    if hasattr(value, "value") and hasattr(value, "name"):
        return str(value.value)  # Handle enum values
    return value


def _extract_operation_context(bound_args: inspect.BoundArguments) -> dict[str, Any]:
    """Extract loggable context from function arguments."""
    context = {}
    for param_name, value in bound_args.arguments.items():
        if param_name in _CONTEXT_PARAMS:
            context[param_name] = _serialize_parameter_value(value)
    return context


def _create_success_context(
    base_context: dict[str, Any], execution_time_ms: float, result: Any
) -> dict[str, Any]:
    """Create success logging context."""
    success_context = {
        **base_context,
        "success": True,
        "execution_time_ms": round(execution_time_ms, 2),
        "result_type": type(result).__name__,
    }

    if isinstance(result, bool | int | float | str):
        success_context["result"] = result

    return success_context


def _create_error_context(
    base_context: dict[str, Any], execution_time_ms: float, error: Exception
) -> dict[str, Any]:
    """Create error logging context."""
    context = {
        **base_context,
        "success": False,
        "execution_time_ms": round(execution_time_ms, 2),
        "error_type": type(error).__name__,
        "error_message": str(error),
    }
    code = getattr(error, "code", None)
    if code is not None:
        context["error_code"] = str(code)
    return context


def _setup_logging_context(
    func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Setup logging context for an operation."""
    sig = inspect.signature(func)
    bound_args = sig.bind(*args, **kwargs)
    bound_args.apply_defaults()

    return {
        "correlation_id": str(uuid.uuid4())[:8],
        "timestamp": str(time.time()),
        **_extract_operation_context(bound_args),
    }


F = TypeVar("F", bound=Callable[..., Any])


def log_operation(func: F) -> F:
    """Decorator to log portfolio operations with correlation IDs.

    Works on plain functions and coroutine functions. Failures are logged
    and re-raised unchanged.
    """
    func_name = func.__name__

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            context = _setup_logging_context(func, args, kwargs)
            logger.info(f"Portfolio operation started: {func_name}", extra=context)
            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                execution_time_ms = (time.time() - start_time) * 1000
                logger.warning(
                    f"Portfolio operation rejected: {func_name}: {e}",
                    extra=_create_error_context(context, execution_time_ms, e),
                )
                raise
            execution_time_ms = (time.time() - start_time) * 1000
            logger.success(
                f"Portfolio operation completed: {func_name}",
                extra=_create_success_context(context, execution_time_ms, result),
            )
            return result

        return async_wrapper  # type: ignore

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        context = _setup_logging_context(func, args, kwargs)
        logger.info(f"Portfolio operation started: {func_name}", extra=context)
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            execution_time_ms = (time.time() - start_time) * 1000
            logger.warning(
                f"Portfolio operation rejected: {func_name}: {e}",
                extra=_create_error_context(context, execution_time_ms, e),
            )
            raise
        execution_time_ms = (time.time() - start_time) * 1000
        logger.success(
            f"Portfolio operation completed: {func_name}",
            extra=_create_success_context(context, execution_time_ms, result),
        )
        return result

    return wrapper  # type: ignore
