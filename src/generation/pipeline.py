"""
Generation Pipeline
Drives the invoker over flat groups or a planned queue, strictly one unit
at a time, and persists each result. The first failing unit aborts the run.
"""

import time
from typing import Any

from pydantic import BaseModel, Field

from core.errors import GenerationError, UnitGenerationError
from core.logging_config import LogContext, get_logger
from monitoring import MetricsCollector, metrics_collector, trace_operation_async
from planner.models import GenerationQueueItem, UnitSpec
from .invoker import RetryingInvoker
from .sanitize import attach_documentation, extract_code, sanitize_identifiers
from .writer import GroupUnit, OutputWriter

logger = get_logger(__name__)


class GeneratedUnit(BaseModel):
    """One persisted unit."""

    name: str
    group: str
    path: str
    backend: str


class GenerationReport(BaseModel):
    """Outcome of a completed run."""

    units: list[GeneratedUnit] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)
    duration_s: float = 0.0

    @property
    def count(self) -> int:
        return len(self.units)


class GenerationPipeline:
    def __init__(
        self,
        invoker: RetryingInvoker,
        writer: OutputWriter,
        timeout_ms: int | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.invoker = invoker
        self.writer = writer
        self.timeout_ms = timeout_ms
        self._metrics = metrics or metrics_collector

    async def run_groups(self, groups: list[dict[str, Any]]) -> GenerationReport:
        """
        Generate every component of flattened (or legacy) groups, in order.

        Raises:
            PlanningError: Two units share an output path or one hits a reserved file
            UnitGenerationError: The first unit that failed to generate
        """
        planned: list[tuple[str, str, list[tuple[UnitSpec, dict[str, Any]]]]] = []
        for group in groups:
            group_name = str(group.get("name") or "general")
            description = str(group.get("description") or f"{group_name} components")
            units = []
            for record in group.get("components") or []:
                unit = UnitSpec.from_record(record, {"name": group_name, "description": description})
                context = {
                    "group": group_name,
                    "kind": unit.kind,
                    "tags": record.get("tags", []),
                    "dependencies": record.get("dependencies", []),
                    "context": record.get("context", ""),
                }
                units.append((unit, context))
            planned.append((group_name, description, units))

        self.writer.check_targets((unit.group, unit.name) for _, _, units in planned for unit, _ in units)

        report = GenerationReport()
        start = time.perf_counter()

        async with trace_operation_async("generate_groups", groups=len(groups)):
            for group_name, description, units in planned:
                written: list[GroupUnit] = []
                for unit, context in units:
                    await self._generate(unit, context, "", report)
                    written.append(GroupUnit(unit.name, unit.description))

                self.writer.write_group_artifacts(group_name, description, written)
                if written:
                    report.groups.append(group_name)

        report.duration_s = time.perf_counter() - start
        logger.info("generation_complete", units=report.count, groups=len(report.groups))
        return report

    async def run_queue(self, queue: list[GenerationQueueItem]) -> GenerationReport:
        """Generate every queue item in queue order, prefixed with its self-documentation."""
        units = [UnitSpec.from_queue_item(item) for item in queue]
        self.writer.check_targets((unit.group, unit.name) for unit in units)

        report = GenerationReport()
        start = time.perf_counter()
        by_group: dict[str, list[GroupUnit]] = {}

        async with trace_operation_async("generate_queue", items=len(queue)):
            for item, unit in zip(queue, units):
                await self._generate(unit, item.context(), item.self_documentation, report)
                by_group.setdefault(item.group, []).append(GroupUnit(unit.name, unit.description))

            for group_name, group_units in by_group.items():
                self.writer.write_group_artifacts(group_name, f"{group_name} components", group_units)
                report.groups.append(group_name)

        report.duration_s = time.perf_counter() - start
        logger.info("generation_complete", units=report.count, groups=len(report.groups))
        return report

    async def _generate(
        self,
        unit: UnitSpec,
        context: dict[str, Any],
        documentation: str,
        report: GenerationReport,
    ) -> None:
        with LogContext(unit=unit.name, group=unit.group):
            try:
                generated = await self.invoker.invoke(unit, context, self.timeout_ms)
            except GenerationError as e:
                self._metrics.record_unit("failed")
                self._metrics.record_error(type(e).__name__, "pipeline")
                e.for_unit(unit.name, unit.group, unit.description)
                failure = UnitGenerationError(e, completed=[u.name for u in report.units])
                logger.error(
                    "unit_failed",
                    error=str(failure),
                    attempts=e.attempts,
                    completed=len(report.units),
                )
                raise failure from e

            code = sanitize_identifiers(extract_code(generated.content), unit.name)
            code = attach_documentation(code, documentation)
            path = self.writer.write_unit(unit.group, unit.name, code)

            self._metrics.record_unit("generated")
            report.units.append(
                GeneratedUnit(name=unit.name, group=unit.group, path=str(path), backend=generated.backend)
            )


__all__ = ["GenerationPipeline", "GenerationReport", "GeneratedUnit"]
