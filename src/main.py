"""
Component Forge - Main Entry Point
HTTP surface over planning, generation and preview registry builds
"""

from typing import Any, Literal

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from injector import Injector
from pydantic import BaseModel, Field

from core import (
    ForgeError,
    HostedGenerationError,
    PlanningError,
    UnitGenerationError,
    configure_logging,
    create_container,
    get_logger,
    get_settings,
)
from generation.pipeline import GenerationPipeline
from monitoring import metrics_collector
from planner import (
    build_architecture_plan,
    build_generation_queue,
    build_tree,
    flatten_to_groups,
    load_document,
)
from preview.registry import RegistryBuilder

logger = get_logger(__name__)

Mode = Literal["groups", "queue"]


class SpecRequest(BaseModel):
    """A component specification, either parsed or as raw text."""

    document: dict[str, Any] | None = None
    text: str | None = None
    mode: Mode = "groups"
    project: dict[str, Any] = Field(default_factory=dict)

    def resolve(self) -> dict[str, Any]:
        if self.document is not None:
            return self.document
        if self.text:
            return load_document(self.text)
        raise PlanningError("empty specification")


def plan(request: SpecRequest) -> dict[str, Any]:
    document = request.resolve()
    if request.mode == "groups":
        groups = flatten_to_groups(document)
        metrics_collector.record_plan("groups", "success", sum(len(g.get("components") or []) for g in groups))
        return {"mode": "groups", "groups": groups}

    root = build_tree(document)
    queue = build_generation_queue(root)
    return {
        "mode": "queue",
        "queue": [
            {
                "name": item.name,
                "level": item.level,
                "group": item.group,
                "parents": list(item.parents),
                "routes": [r.path for r in item.routes],
                "server_actions": [a.name for a in item.server_actions],
                "client_actions": [a.name for a in item.client_actions],
            }
            for item in queue
        ],
        "architecture": build_architecture_plan(root, request.project),
    }


def create_app(container: Injector | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    container = container or create_container(settings)

    app = FastAPI(
        title="Component Forge",
        description="Component planning, generation and preview registry service",
        version="0.1.0",
    )
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Health check endpoint"""
        pipeline = container.get(GenerationPipeline)
        return {
            "status": "healthy",
            "backend_path": pipeline.invoker.path,
            "providers": pipeline.invoker.config.provider_order(),
            "output_dir": settings.output_dir,
        }

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(metrics_collector.get_metrics(), media_type="text/plain; version=0.0.4")

    @app.post("/plan")
    async def plan_endpoint(request: SpecRequest) -> dict[str, Any]:
        try:
            return plan(request)
        except PlanningError as e:
            metrics_collector.record_plan(request.mode, "error")
            logger.warning("plan_rejected", error=str(e))
            raise HTTPException(status_code=422, detail={"error": str(e), **e.details}) from e

    @app.post("/generate")
    async def generate(request: SpecRequest) -> dict[str, Any]:
        """Generate every unit sequentially; the first failure aborts the run."""
        pipeline = container.get(GenerationPipeline)
        try:
            document = request.resolve()
            if request.mode == "groups":
                report = await pipeline.run_groups(flatten_to_groups(document))
            else:
                report = await pipeline.run_queue(build_generation_queue(build_tree(document)))
        except PlanningError as e:
            raise HTTPException(status_code=422, detail={"error": str(e), **e.details}) from e
        except UnitGenerationError as e:
            detail: dict[str, Any] = {"error": str(e), "completed": e.completed, **e.details}
            if isinstance(e.cause, HostedGenerationError):
                detail["guidance"] = e.cause.guidance
            raise HTTPException(status_code=502, detail=detail) from e

        return report.model_dump()

    @app.post("/registry")
    async def registry() -> dict[str, Any]:
        builder = container.get(RegistryBuilder)
        try:
            build = builder.build()
        except (OSError, ForgeError) as e:
            logger.error("registry_build_failed", error=str(e))
            raise HTTPException(status_code=500, detail={"error": str(e)}) from e
        return {
            "entries": [
                {"group": e.group, "name": e.name, "path": e.module_path} for e in build.entries
            ],
            "preview_props": build.preview_props,
            "written": [str(p) for p in build.written],
        }

    logger.info("app_created", output_dir=settings.output_dir)
    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
