"""
Metrics Collection
Prometheus metrics for generation runs and preview builds
"""

from prometheus_client import Counter, Gauge, Histogram, generate_latest


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for planning, invocation and preview.
    """

    def __init__(self) -> None:
        # Planning metrics
        self.plans_total = Counter(
            "forge_plans_total",
            "Total number of planning passes",
            ["mode", "status"],
        )
        self.planned_units = Gauge(
            "forge_planned_units",
            "Units in the most recent plan",
            ["mode"],
        )

        # Invocation metrics
        self.attempts_total = Counter(
            "forge_generation_attempts_total",
            "Total number of backend invocation attempts",
            ["backend", "outcome"],
        )
        self.attempt_duration = Histogram(
            "forge_generation_attempt_seconds",
            "Backend invocation attempt duration in seconds",
            ["backend"],
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
        )
        self.retries_total = Counter(
            "forge_generation_retries_total",
            "Total number of retry sleeps taken",
            ["reason"],
        )
        self.units_total = Counter(
            "forge_units_total",
            "Units processed by the generation pipeline",
            ["status"],
        )

        # Preview metrics
        self.registry_entries = Gauge(
            "forge_registry_entries",
            "Entries in the most recent preview registry",
        )
        self.synthesis_gaps_total = Counter(
            "forge_synthesis_gaps_total",
            "Props omitted because their type could not be resolved",
        )

        # Error metrics
        self.errors_total = Counter(
            "forge_errors_total",
            "Total number of errors",
            ["error_type", "component"],
        )

    def record_plan(self, mode: str, status: str, units: int = 0) -> None:
        """Record a planning pass."""
        self.plans_total.labels(mode=mode, status=status).inc()
        if status == "success":
            self.planned_units.labels(mode=mode).set(units)

    def record_attempt(self, backend: str, outcome: str, duration: float) -> None:
        """Record one backend invocation attempt."""
        self.attempts_total.labels(backend=backend, outcome=outcome).inc()
        self.attempt_duration.labels(backend=backend).observe(duration)

    def record_retry(self, reason: str) -> None:
        """Record a retry sleep."""
        self.retries_total.labels(reason=reason).inc()

    def record_unit(self, status: str) -> None:
        """Record a unit leaving the pipeline."""
        self.units_total.labels(status=status).inc()

    def set_registry_size(self, entries: int) -> None:
        """Set the registry entry count."""
        self.registry_entries.set(entries)

    def record_synthesis_gap(self) -> None:
        """Record an omitted preview prop."""
        self.synthesis_gaps_total.inc()

    def record_error(self, error_type: str, component: str) -> None:
        """Record an error."""
        self.errors_total.labels(error_type=error_type, component=component).inc()

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        return generate_latest()


# Global metrics collector instance
metrics_collector = MetricsCollector()
