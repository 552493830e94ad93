"""
Saga driver — ordered steps with compensating actions.

A saga is a list of steps, each a forward action optionally paired
with a compensation.  Steps run strictly in order; the first failure
stops the forward pass and the compensations of every step already
started run in reverse order.

Flow:
    step 1 → step 2 → ... → step k fails
                         ← compensate k (if compensate_on_failure)
                         ← compensate k-1 ... ← compensate 1

Compensations are best-effort: a failing compensation is logged and
recorded in the report, and the remaining compensations still run.
The error reported for the saga is always the forward failure.

A step that exceeds the timeout is reported as failed, but the driver
waits for its action to finish before compensating.  If the action
succeeded late, its own compensation runs too.
"""

from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable

from provisioner.core.errors import StepTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class SagaStep:
    """One forward action and its compensation.

    ``compensate_on_failure`` makes the compensation run even when this
    step's own action failed, for actions that may leave a partial
    resource behind (a half-created directory).
    """

    name: str
    action: Callable[[], Any]
    compensation: Callable[[], Any] | None = None
    compensate_on_failure: bool = False


@dataclass
class SagaReport:
    """Result of executing a saga."""

    operation_id: str = ""
    saga: str = ""
    completed: list[str] = field(default_factory=list)
    compensated: list[str] = field(default_factory=list)
    compensation_errors: list[str] = field(default_factory=list)
    failed_step: str | None = None
    error: Exception | None = None
    results: dict[str, Any] = field(default_factory=dict)
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        return "ok" if self.ok else "failed"

    def raise_if_failed(self) -> None:
        """Re-raise the forward failure, if any."""
        if self.error is not None:
            raise self.error


class Saga:
    """Builder and executor for a sequence of ``SagaStep``.

    Args:
        name: Label used in logs and reports (e.g. "create").
        step_timeout: Seconds each forward action may take; 0 disables.
    """

    def __init__(self, name: str, step_timeout: float = 0.0):
        self.name = name
        self.step_timeout = step_timeout
        self._steps: list[SagaStep] = []

    def add(
        self,
        name: str,
        action: Callable[[], Any],
        compensation: Callable[[], Any] | None = None,
        *,
        compensate_on_failure: bool = False,
    ) -> Saga:
        self._steps.append(SagaStep(
            name=name,
            action=action,
            compensation=compensation,
            compensate_on_failure=compensate_on_failure,
        ))
        return self

    def execute(self) -> SagaReport:
        """Run all steps; on failure, compensate and record the error.

        Never raises for step failures — inspect ``report.error`` or
        call ``report.raise_if_failed()``.
        """
        report = SagaReport(operation_id=uuid.uuid4().hex[:12], saga=self.name)
        started: list[SagaStep] = []
        pool = ThreadPoolExecutor(max_workers=1) if self.step_timeout > 0 else None
        start = time.monotonic()

        try:
            for step in self._steps:
                logger.debug("[%s] %s: step '%s'", report.operation_id, self.name, step.name)
                try:
                    result = self._run_action(step, pool)
                except Exception as e:
                    report.failed_step = step.name
                    report.error = e
                    logger.warning(
                        "[%s] %s failed at step '%s': %s",
                        report.operation_id, self.name, step.name, e,
                    )
                    if step.compensate_on_failure or (
                        isinstance(e, StepTimeoutError) and e.completed_late
                    ):
                        started.append(step)
                    break

                started.append(step)
                report.completed.append(step.name)
                report.results[step.name] = result

            if report.error is not None:
                self._compensate(started, report)
        finally:
            if pool is not None:
                pool.shutdown(wait=False, cancel_futures=True)
            report.duration_ms = int((time.monotonic() - start) * 1000)

        if report.ok:
            logger.info(
                "[%s] %s completed (%d steps, %dms)",
                report.operation_id, self.name, len(report.completed), report.duration_ms,
            )
        return report

    def _run_action(self, step: SagaStep, pool: ThreadPoolExecutor | None) -> Any:
        if pool is None:
            return step.action()
        future = pool.submit(step.action)
        try:
            return future.result(timeout=self.step_timeout)
        except FutureTimeoutError as e:
            error = StepTimeoutError(step.name, self.step_timeout)
            cause = e

        # Threads cannot be interrupted; rollback waits for the action to settle
        logger.warning("%s: waiting for timed-out step '%s' to settle", self.name, step.name)
        error.completed_late = future.exception() is None
        raise error from cause

    def _compensate(self, started: list[SagaStep], report: SagaReport) -> None:
        for step in reversed(started):
            if step.compensation is None:
                continue
            try:
                step.compensation()
            except Exception as e:
                logger.error(
                    "[%s] %s rollback of '%s' failed: %s",
                    report.operation_id, self.name, step.name, e,
                )
                report.compensation_errors.append(f"{step.name}: {e}")
                continue
            report.compensated.append(step.name)
            logger.info("[%s] %s rolled back '%s'", report.operation_id, self.name, step.name)
