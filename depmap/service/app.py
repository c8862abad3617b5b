"""FastAPI application entrypoint for depmap service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..errors import MalformedPayload
from ..export import module_graph_to_dict
from ..orchestrator import Resolver
from ..resolver import ResolutionResult

ResolverFactory = Callable[[Optional[Path], bool], Resolver]


class ResolveRequest(BaseModel):
    payload: str
    work_dir: Optional[str] = None
    preview: bool = False


class ResolveResponse(BaseModel):
    modules: List[Dict[str, Any]]
    diagnostics: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str


def _default_resolver(work_dir: Optional[Path], preview: bool) -> Resolver:
    if work_dir is None:
        return Resolver.for_directory(Path.cwd(), preview=preview)
    return Resolver.for_directory(work_dir, preview=preview)


def create_app(resolver_factory: ResolverFactory = _default_resolver) -> FastAPI:
    """Create the FastAPI application exposing module graph resolution."""

    app = FastAPI(title="depmap", version="0.1.0")

    def get_resolver_factory() -> ResolverFactory:
        return resolver_factory

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/resolve", response_model=ResolveResponse)
    async def resolve(
        request: ResolveRequest,
        factory: ResolverFactory = Depends(get_resolver_factory),
    ) -> ResolveResponse:
        work_dir = Path(request.work_dir) if request.work_dir else None

        def _run_resolve() -> ResolutionResult:
            # One resolver per request keeps resolutions isolated.
            return factory(work_dir, request.preview).resolve(request.payload)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_resolve)
        return ResolveResponse(**module_graph_to_dict(result))

    @app.exception_handler(MalformedPayload)
    async def malformed_payload_handler(
        _: Any, exc: MalformedPayload
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    try:
        import uvicorn
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install depmap[service]`."
        ) from exc

    app = create_app()
    uvicorn.run(app, host=host, port=port)
