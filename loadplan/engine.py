"""Hand-off point between built plans and an external execution engine.

loadplan never issues HTTP calls itself. An engine is anything with an
``execute(plan)`` method; hand_off() calls it exactly once and turns unexpected
failures into ExecutionError. Retries are left to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from .exceptions import ExecutionError, LoadPlanError
from .logging_config import resolve_logger
from .models import LoadPlan


@runtime_checkable
class ExecutionEngine(Protocol):
    """Load-generation runtime that consumes a finished plan."""

    def execute(self, plan: LoadPlan) -> Any: ...


def hand_off(plan: LoadPlan, engine: ExecutionEngine, logger: logging.Logger | None = None) -> Any:
    """Submit plan to engine and return whatever the engine returns.

    Raises:
        ExecutionError: If plan or engine is unusable, or the engine fails.
            loadplan errors raised by the engine propagate unchanged.
    """
    log = resolve_logger(logger, "engine")
    if not isinstance(plan, LoadPlan):
        raise ExecutionError(f"Only built plans can be handed off, got {type(plan).__name__}")
    if not isinstance(engine, ExecutionEngine):
        raise ExecutionError(f"Engine has no execute() method: {type(engine).__name__}")

    log.info("Handing plan %r with %d population(s) to %s", plan.name, len(plan), type(engine).__name__)
    try:
        return engine.execute(plan)
    except LoadPlanError:
        raise
    except Exception as e:
        log.exception("Execution engine failed on plan %r", plan.name)
        raise ExecutionError(
            "Execution engine failed",
            context={"plan": plan.name, "engine": type(engine).__name__},
            original_error=e,
        ) from e
