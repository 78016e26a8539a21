"""
Check runner.

Features:
- Selection from --only / --ignore before anything executes
- Parallel execution with a bounded number of concurrent checks
- Per-check timeout
- Graceful degradation: a failing check is recorded and the run continues
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Iterable, List, Optional, Type

from .core.base_checker import Checker, CheckError
from .core.models import CheckMetadata, Report, Severity
from .core.registry import CheckRegistry

logger = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    EXECUTING = "executing"
    AGGREGATED = "aggregated"


class ExitCode(IntEnum):
    """Process exit codes of `pgdoctor run`."""

    OK = 0
    WARN = 1
    FAIL = 2
    CHECK_ERROR = 3  # verdict is incomplete
    CONFIG_ERROR = 4  # bad filters, missing DSN, connection failure

    @classmethod
    def from_severity(cls, severity: Severity) -> "ExitCode":
        return {Severity.OK: cls.OK, Severity.WARN: cls.WARN, Severity.FAIL: cls.FAIL}[severity]


@dataclass
class CheckOutcome:
    """Result of one check invocation: a report or an error, never both."""

    metadata: CheckMetadata
    report: Optional[Report] = None
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunResult:
    """Aggregated outcomes in selection order."""

    outcomes: List[CheckOutcome] = field(default_factory=list)

    @property
    def reports(self) -> List[Report]:
        return [o.report for o in self.outcomes if o.ok and o.report is not None]

    @property
    def errors(self) -> List[CheckOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def severity(self) -> Severity:
        """Fold over successful reports only; OK when there are none."""
        return Severity.fold(r.severity for r in self.reports)

    @property
    def had_errors(self) -> bool:
        return any(not o.ok for o in self.outcomes)

    @property
    def exit_code(self) -> ExitCode:
        if self.had_errors:
            return ExitCode.CHECK_ERROR
        return ExitCode.from_severity(self.severity)


class CheckRunner:
    """Оркестратор выполнения проверок. Один экземпляр = один запуск."""

    def __init__(
        self,
        registry: CheckRegistry,
        queries: Any,
        only: Optional[Iterable[str]] = None,
        ignore: Optional[Iterable[str]] = None,
        timeout_seconds: float = 2.0,
        parallel: bool = True,
        max_parallel: int = 4,
    ):
        """
        Args:
            registry: Реестр проверок
            queries: Коллаборатор с методами запросов, передаётся каждой проверке
            only: Фильтры check id / категорий для запуска
            ignore: Фильтры check id / категорий для пропуска
            timeout_seconds: Таймаут одной проверки
            parallel: Запускать проверки конкурентно
            max_parallel: Максимум одновременно выполняемых проверок
        """
        self.registry = registry
        self.queries = queries
        self.only = list(only or [])
        self.ignore = list(ignore or [])
        self.timeout_seconds = timeout_seconds
        self.parallel = parallel
        self.max_parallel = max(1, max_parallel)

        self.state = RunState.IDLE
        self.result: Optional[RunResult] = None

    async def run(self) -> RunResult:
        """
        Select and execute checks, then aggregate.

        Raises:
            FilterError: unknown check id or category, before any check runs
            RuntimeError: this runner was already used
        """
        if self.state != RunState.IDLE:
            raise RuntimeError(f"CheckRunner already used (state: {self.state.value})")

        self.state = RunState.SELECTING
        selected = self.registry.select(only=self.only, ignore=self.ignore)
        logger.info(f"Selected {len(selected)} of {len(self.registry)} checks")

        self.state = RunState.EXECUTING
        if self.parallel and len(selected) > 1:
            outcomes = await self._run_parallel(selected)
        else:
            outcomes = await self._run_sequential(selected)

        self.result = RunResult(outcomes=outcomes)
        self.state = RunState.AGGREGATED

        logger.info(
            f"Run finished: {len(self.result.reports)} reports, {len(self.result.errors)} errors, "
            f"severity {self.result.severity.label}"
        )
        return self.result

    async def _run_parallel(self, selected: List[Type[Checker]]) -> List[CheckOutcome]:
        semaphore = asyncio.Semaphore(self.max_parallel)

        async def bounded(check_class: Type[Checker]) -> CheckOutcome:
            async with semaphore:
                return await self._run_one(check_class)

        # return_exceptions: one broken task must not cancel the others
        results = await asyncio.gather(*(bounded(c) for c in selected), return_exceptions=True)

        outcomes = []
        for check_class, result in zip(selected, results):
            if isinstance(result, BaseException):
                meta = check_class.metadata()
                logger.error(f"Check {meta.qualified_id} crashed: {result!r}")
                outcomes.append(CheckOutcome(
                    metadata=meta,
                    error=f"running {meta.qualified_id}: {type(result).__name__}: {result}",
                ))
            else:
                outcomes.append(result)
        return outcomes

    async def _run_sequential(self, selected: List[Type[Checker]]) -> List[CheckOutcome]:
        outcomes = []
        for i, check_class in enumerate(selected, 1):
            logger.debug(f"[{i}/{len(selected)}] {check_class.metadata().qualified_id}")
            outcomes.append(await self._run_one(check_class))
        return outcomes

    async def _run_one(self, check_class: Type[Checker]) -> CheckOutcome:
        """Run a single check. Never raises for check failures."""
        meta = check_class.metadata()
        logger.info(f"Running {meta.qualified_id}...")
        start = time.monotonic()

        report: Optional[Report] = None
        error: Optional[str] = None
        try:
            checker = check_class(self.queries)
            report = await asyncio.wait_for(checker.check(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            error = f"running {meta.qualified_id}: timed out after {self.timeout_seconds:g}s"
        except CheckError as e:
            error = str(e)
        except Exception as e:
            logger.debug(f"{meta.qualified_id} raised", exc_info=True)
            error = f"running {meta.qualified_id}: {type(e).__name__}: {e}"
        else:
            if report is None or not report.findings:
                error = f"running {meta.qualified_id}: check returned an empty report"
                report = None

        duration_ms = (time.monotonic() - start) * 1000
        if error is not None:
            logger.error(error)
        else:
            logger.info(f"{meta.qualified_id} finished in {duration_ms:.0f}ms: {report.severity.label}")

        return CheckOutcome(metadata=meta, report=report, error=error, duration_ms=duration_ms)
