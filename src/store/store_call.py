"""Blocking store call boundary.

Backends may answer synchronously or with a ``concurrent.futures.Future``.
This module awaits either form and splits failures into execution
failures and interruptions so callers can branch on the two kinds.
"""

from __future__ import annotations

from concurrent.futures import CancelledError, Future
from typing import Any, Callable

from core.errors import StrataError, StrataExecutionError, StrataInterruptedError


def await_store(description: str, call: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a store call and block until its result is available.

    Args:
        description: Human-readable operation, used in error messages.
        call: Backend callable.
        *args: Positional call arguments.
        **kwargs: Keyword call arguments.

    Returns:
        The call result, resolved when it is a future.

    Raises:
        StrataInterruptedError: If the call or the wait is interrupted or cancelled.
        StrataExecutionError: If the backend call fails.
    """
    try:
        result = call(*args, **kwargs)
        if isinstance(result, Future):
            result = result.result()
    except StrataError:
        raise
    except (InterruptedError, CancelledError) as error:
        raise StrataInterruptedError(
            f"Interrupted while waiting to {description}: {error!r}. Retry the whole operation."
        ) from error
    except Exception as error:
        raise StrataExecutionError(
            f"Failed to {description}: {error}. Check store availability and retry."
        ) from error
    return result
