"""FastAPI app exposing site generation and the form helpers."""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from agent_site_builder.config import Settings
from agent_site_builder.errors import ConfigError, PipelineError, ProjectLogError, SchemaError
from agent_site_builder.forms.fields import FieldDescriptor
from agent_site_builder.forms.submission import build_payload
from agent_site_builder.integrations.supabase import ProjectLog, ProjectStore
from agent_site_builder.parser.openapi import extract_user_inputs, load_document
from agent_site_builder.pipeline import GenerateSiteRequest, GenerateSiteResult, SitePipeline

logger = logging.getLogger(__name__)


class FieldsRequest(BaseModel):
    openapi: Any = None
    max_depth: int | None = 0
    heuristics: bool = True


class FieldsResponse(BaseModel):
    fields: list[FieldDescriptor]


class PayloadRequest(FieldsRequest):
    values: dict[str, Any] = {}


class PayloadResponse(BaseModel):
    body: dict[str, Any]


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    pipeline = SitePipeline(settings)
    app = FastAPI(title="Agent Site Builder", version="0.1.0")

    def _fields(req: FieldsRequest) -> list[FieldDescriptor]:
        # documents may also arrive as YAML or JSON text
        doc = load_document(req.openapi) if isinstance(req.openapi, str) else req.openapi
        try:
            return extract_user_inputs(doc, max_depth=req.max_depth, heuristics=req.heuristics)
        except SchemaError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

    @app.get("/health")
    def health() -> dict:
        return {"ok": True}

    @app.post("/api/generate-site", response_model=GenerateSiteResult)
    def generate_site(req: GenerateSiteRequest):
        if not req.prompt.strip():
            return JSONResponse(status_code=400, content={"error": "Missing required field: prompt"})
        try:
            return pipeline.run(req)
        except PipelineError as e:
            logger.exception("Site generation failed during %s", e.step)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "step": e.step,
                    "message": str(e.cause) or "Unknown error occurred",
                    "agent": e.agent.model_dump(mode="json") if e.agent else None,
                    "neural_seek_response": e.agent_response,
                },
            )

    @app.post("/api/fields", response_model=FieldsResponse)
    def fields(req: FieldsRequest):
        return FieldsResponse(fields=_fields(req))

    @app.post("/api/payload", response_model=PayloadResponse)
    def payload(req: PayloadRequest):
        return PayloadResponse(body=build_payload(_fields(req), req.values))

    @app.get("/api/projects", response_model=list[ProjectLog])
    def projects():
        try:
            return ProjectStore(settings.supabase_url, settings.supabase_key).list_projects()
        except (ConfigError, ProjectLogError) as e:
            logger.error("Listing projects failed: %s", e)
            raise HTTPException(status_code=502, detail=str(e)) from e

    return app
