"""Two-write compensation helper.

Every operation that writes to both an entity store and the Organization
Index goes through :class:`DualWrite`:

1. ``primary()`` - first write. If it fails, nothing was written and the
   error propagates untouched.
2. ``secondary()`` - second write. If it fails, ``compensate()`` undoes
   the primary write.
3. The secondary error is always re-raised. The outcome of the rollback is
   logged: ``rollback_succeeded`` at warning level, ``rollback_failed`` at
   error level. A failed rollback is never retried and never replaces the
   original error.

This is a saga step, not a transaction: it handles two writes. A longer
sequence chains steps, with the rest of the sequence as the secondary of
the step before it, so a late failure unwinds every earlier write.

Example::

    DualWrite(
        operation="add_cluster",
        primary=lambda: clusters.add(cluster),
        secondary=lambda: organizations.add_child(ChildKind.CLUSTER, org_id, cluster.cluster_id),
        compensate=lambda: clusters.remove(cluster.cluster_id),
        context={"organization_id": org_id, "cluster_id": cluster.cluster_id},
    ).run()

Tags:
    compensation, saga, consistency, system-model
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from system_model.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DualWrite[T]:
    """Do ``primary``; if ``secondary`` fails, run ``compensate`` and re-raise."""

    operation: str
    primary: Callable[[], T]
    secondary: Callable[[], Any]
    compensate: Callable[[], Any]
    context: dict[str, Any] = field(default_factory=dict)

    def run(self) -> T:
        result = self.primary()
        try:
            self.secondary()
        except Exception as exc:
            self._rollback(exc)
            raise
        return result

    def _rollback(self, original: Exception) -> None:
        try:
            self.compensate()
        except Exception as rollback_exc:
            logger.error(
                "rollback_failed",
                operation=self.operation,
                error=str(original),
                rollback_error=str(rollback_exc),
                **self.context,
            )
            return
        logger.warning(
            "rollback_succeeded",
            operation=self.operation,
            error=str(original),
            **self.context,
        )


def best_effort(operation: str, action: Callable[[], Any], **context: Any) -> bool:
    """Run a cleanup action whose failure must not fail the caller.

    Returns ``True`` when the action completed. Failures are logged.
    """
    try:
        action()
    except Exception as exc:
        logger.warning("cleanup_failed", operation=operation, error=str(exc), **context)
        return False
    return True


__all__ = ["DualWrite", "best_effort"]
