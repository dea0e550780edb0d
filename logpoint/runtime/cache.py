"""
Compute-once cache of log plans keyed by callable identity.

Building a plan is pure, so a duplicate build would only waste work; the
per-key lock still guarantees at most one build per key when many threads hit
a callable for the first time at once.

Keys are held weakly: a plan lives exactly as long as the callable it was
built for.
"""
import threading
import weakref
from typing import Any, Callable, Optional

from logpoint.logging import get_logger
from logpoint.plan.rules import LogPlan

logger = get_logger(__name__)


class PlanCache:
    """Thread-safe mapping of callable keys to their built plans."""

    def __init__(self):
        self._plans: "weakref.WeakKeyDictionary[Any, LogPlan]" = weakref.WeakKeyDictionary()
        self._locks: "weakref.WeakKeyDictionary[Any, threading.Lock]" = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    def get_or_build(self, key: Any, factory: Callable[[], LogPlan]) -> LogPlan:
        """
        Return the cached plan for `key`, building it on first use.

        Args:
            key: The callable; must support weak references
            factory: Builds the plan; called at most once per key

        Returns:
            The plan for `key`
        """
        plan = self._plans.get(key)
        if plan is not None:
            return plan

        with self._lock:
            key_lock = self._locks.setdefault(key, threading.Lock())

        with key_lock:
            plan = self._plans.get(key)
            if plan is None:
                plan = factory()
                self._plans[key] = plan
                logger.debug(
                    "plan_built",
                    plan_logger=plan.logger,
                    plan_level=plan.level.value,
                    message=plan.message,
                    parameters=len(plan.parameters),
                )
        return plan

    def get(self, key: Any) -> Optional[LogPlan]:
        """The cached plan for `key`, or None."""
        return self._plans.get(key)

    def clear(self) -> None:
        """Drop every cached plan."""
        with self._lock:
            self._plans.clear()
            self._locks.clear()

    def __len__(self) -> int:
        return len(self._plans)


# Shared by every @logged callable
plan_cache = PlanCache()
