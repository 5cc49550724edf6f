"""HTTP boundary for audit generation."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from audit_report.assembler import DOCX_MIME_TYPE
from audit_report.errors import PipelineError
from audit_report.filenames import sanitize_report_name
from audit_report.pipeline import AuditPipeline, create_pipeline
from config import Config, configure_logging

logger = logging.getLogger(__name__)


class AuditRequest(BaseModel):
    """Request body for POST /api/generate-audit."""

    url: Optional[str] = None
    reportName: Optional[str] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration and build the pipeline once at startup."""
    configure_logging()
    Config.validate_config()
    app.state.pipeline = create_pipeline(Config)
    logger.info("Audit service ready (capture strategy: %s)", app.state.pipeline.source.name)
    yield
    logger.info("Audit service shutting down")


app = FastAPI(
    title="Page Audit Service",
    description="Full-page screenshot audits delivered as Word documents",
    version="1.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Answer malformed bodies in the same shape as every other failure."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": "; ".join(e.get("msg", "") for e in exc.errors())},
    )


def get_pipeline(request: Request) -> AuditPipeline:
    """Get the audit pipeline built at startup."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        pipeline = create_pipeline(Config)
        request.app.state.pipeline = pipeline
    return pipeline


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Page Audit Service"}


@app.post("/api/generate-audit")
async def generate_audit(body: AuditRequest, pipeline: AuditPipeline = Depends(get_pipeline)):
    """
    Capture ``body.url`` and return the audit as a .docx attachment.

    Failures come back as ``{"error", "details"}`` JSON: 400 for a missing
    or invalid URL, 500 for anything that went wrong while capturing or
    assembling.
    """
    if not body.url:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "URL is required"})

    filename = sanitize_report_name(body.reportName)
    try:
        payload = await pipeline.run(body.url)
    except PipelineError as e:
        logger.error("Error generating audit for %s: %s (retryable: %s)", body.url, e, e.retryable)
        return JSONResponse(status_code=e.status_code, content=e.to_dict())

    return Response(
        content=payload,
        status_code=status.HTTP_200_OK,
        media_type=DOCX_MIME_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ui.server:app", host=Config.SERVER_HOST, port=Config.SERVER_PORT)
