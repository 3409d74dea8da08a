"""Dependency Injection Container."""

import os
from typing import Mapping

from injector import Injector, Module, provider, singleton

from clients.providers import BackendConfig
from generation.invoker import RetryingInvoker, RetryPolicy
from generation.pipeline import GenerationPipeline
from generation.writer import OutputWriter
from monitoring import MetricsCollector, metrics_collector
from preview.registry import RegistryBuilder
from .config import Settings, get_settings


class CoreModule(Module):
    """Core dependencies."""

    def __init__(self, settings: Settings | None = None, environ: Mapping[str, str] | None = None) -> None:
        self.settings = settings or get_settings()
        self.environ = os.environ if environ is None else environ

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_metrics(self) -> MetricsCollector:
        return metrics_collector

    @singleton
    @provider
    def provide_backend_config(self, settings: Settings) -> BackendConfig:
        """Credentials are read from the environment exactly once, here."""
        return BackendConfig.from_environ(self.environ, settings)

    @singleton
    @provider
    def provide_retry_policy(self, settings: Settings) -> RetryPolicy:
        return RetryPolicy.from_settings(settings)

    @singleton
    @provider
    def provide_invoker(
        self, config: BackendConfig, policy: RetryPolicy, settings: Settings, metrics: MetricsCollector
    ) -> RetryingInvoker:
        return RetryingInvoker(
            config=config,
            policy=policy,
            timeout_ms=settings.generation_timeout_ms,
            metrics=metrics,
        )

    @singleton
    @provider
    def provide_writer(self, settings: Settings) -> OutputWriter:
        return OutputWriter(settings.output_dir)

    @singleton
    @provider
    def provide_pipeline(
        self, invoker: RetryingInvoker, writer: OutputWriter, settings: Settings, metrics: MetricsCollector
    ) -> GenerationPipeline:
        return GenerationPipeline(invoker, writer, timeout_ms=settings.generation_timeout_ms, metrics=metrics)

    @provider
    def provide_registry_builder(self, settings: Settings, metrics: MetricsCollector) -> RegistryBuilder:
        # Not a singleton: the types source is re-read on every build
        return RegistryBuilder(settings.output_dir, settings.project_root, metrics=metrics)


def create_container(settings: Settings | None = None, environ: Mapping[str, str] | None = None) -> Injector:
    """Create configured injector."""
    return Injector([CoreModule(settings, environ)])
