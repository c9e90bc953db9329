"""
Main FastAPI application for the Forms2APEX generation service.

This module sets up the FastAPI application with proper logging,
tracing, and error handling middleware.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Union

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .utils.logging import configure_logging, get_module_logger
from .utils.tracing import get_trace_id
from .domain.generation import GenerationProgress
from .domain.knowledge import KnowledgeContext
from .domain.errors import InvalidCredentialError, ServiceUnavailableError
from .domain.responses import (
    HealthResponse,
    AnalyzeResponse,
    GenerateResponse,
    VerifyKeyResponse,
)
from .domain.requests import (
    AnalyzeRequest,
    GenerateRequest,
    VerifyKeyRequest,
)
from .api.middleware import (
    request_context_middleware,
    register_exception_handlers,
    error_responses,
)
from .api.dependencies import (
    ApiKeyDep,
    GenerationServiceDep,
    OptionalLLMClientDep,
    SettingsDep,
    SizeAnalyzerDep,
)
from .config import load_settings
from .infrastructure.llm_client import LLMClient, MISSING_CREDENTIAL_MESSAGE


APP_VERSION = "0.1.0"

# Configure logging on module import
configure_logging()
logger = get_module_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Forms2APEX API server", version=APP_VERSION)

    # Load settings once at startup; invalid values abort startup
    settings = load_settings()
    app.state.settings = settings
    logger.info("Settings loaded successfully")

    # Initialize LLM client
    llm_client = LLMClient(settings.llm)
    try:
        await llm_client.connect()
        logger.info("LLM client connected successfully")
    except Exception as e:
        logger.error(f"Failed to connect LLM client: {e}")
        # Continue without LLM - health check will report status

    app.state.llm_client = llm_client

    yield

    # Shutdown
    logger.info("Shutting down Forms2APEX API server")

    if hasattr(app.state, "llm_client"):
        await app.state.llm_client.close()
        logger.info("LLM client closed")


# Create FastAPI application
app = FastAPI(
    title="Forms2APEX API",
    description="Oracle Forms PL/SQL to Oracle APEX code generation with size-aware chunking",
    version=APP_VERSION,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.middleware("http")(request_context_middleware)

register_exception_handlers(app)


# API Routes
@app.get("/", tags=["Root"])
async def root(settings: SettingsDep) -> Dict[str, Union[str, None]]:
    """
    Root endpoint returning basic API information.

    **Response**: Dict with message, version, trace_id, log_level, model
    """
    trace_id = get_trace_id()
    logger.info("Root endpoint accessed", trace_id=trace_id)

    return {
        "message": "Forms2APEX API",
        "version": APP_VERSION,
        "trace_id": trace_id,
        "log_level": settings.app.log_level,
        "model": settings.llm.default_model,
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health(llm_client: OptionalLLMClientDep) -> HealthResponse:
    """
    Health check endpoint.

    **Response Model**: `HealthResponse`
    - status: Overall health (healthy/degraded)
    - llm_service_status: healthy/unhealthy/not_configured
    - default_key_configured: whether requests may omit X-API-Key
    """
    trace_id = get_trace_id()
    logger.info("Health check endpoint accessed", trace_id=trace_id)

    llm_status = "not_configured"
    default_key_configured = False
    if llm_client:
        llm_status = "healthy" if llm_client.is_connected() else "unhealthy"
        default_key_configured = bool(llm_client.config.openrouter_api_key)

    return HealthResponse(
        status="healthy" if llm_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
        llm_service_status=llm_status,
        default_key_configured=default_key_configured,
    )


# -------------------------
# Generation Endpoints
# -------------------------

@app.post(
    "/api/v1/generation/analyze",
    response_model=AnalyzeResponse,
    tags=["Generation"],
    responses=error_responses(422, 500),
)
async def analyze(request: AnalyzeRequest, size_analyzer: SizeAnalyzerDep) -> AnalyzeResponse:
    """
    Classify source size and preview the chunk plan.

    No remote call is made.

    **Request Model**: `AnalyzeRequest`
    - source_text: Forms PL/SQL to analyze

    **Response Model**: `AnalyzeResponse`
    - line_count, estimated_token_count, strategy, description
    - chunks: semantic chunks for chunked / multi-phase strategies

    **Possible Errors**:
    - 422: Invalid request body
    """
    trace_id = get_trace_id()

    analysis = size_analyzer.analyze(request.source_text)

    logger.info(
        "Size analysis completed",
        line_count=analysis.line_count,
        strategy=analysis.strategy.value,
        chunk_count=len(analysis.chunks or []),
        trace_id=trace_id
    )

    return AnalyzeResponse.from_analysis(trace_id, analysis)


@app.post(
    "/api/v1/generation/generate",
    response_model=GenerateResponse,
    tags=["Generation"],
    responses=error_responses(401, 422, 500),
)
async def generate(
    request: GenerateRequest,
    generation_service: GenerationServiceDep,
    settings: SettingsDep,
    api_key: ApiKeyDep,
) -> GenerateResponse:
    """
    Convert one Forms trigger or program unit to APEX PL/SQL.

    Small units are converted in one request; larger ones are chunked,
    converted chunk by chunk and reassembled into a single procedure.

    **Request Model**: `GenerateRequest`
    - unit_name, unit_kind, source_text
    - form_name: names the default knowledge context (optional)
    - block_name, item_name: trigger placement (optional)
    - knowledge_context: form metadata for the prompt (optional)

    **Headers**:
    - X-API-Key: OpenRouter key for this request (optional if the server has one)

    **Response Model**: `GenerateResponse`
    - success, artifact, explanation, strategy
    - per_chunk_results, partial_artifact (chunked runs)
    - error: kind, message, failed_unit, total_units
    - progress_events: every progress event of the run, in order

    Remote generation failures are reported in the body with success=false.

    **Possible Errors**:
    - 401: No API key in the header and none configured on the server
    - 422: Invalid request body
    """
    trace_id = get_trace_id()

    if not (api_key or settings.llm.openrouter_api_key):
        raise InvalidCredentialError(MISSING_CREDENTIAL_MESSAGE)

    context = request.knowledge_context or KnowledgeContext.empty(request.form_name or "FORM")

    logger.info(
        "Generation requested",
        unit_name=request.unit_name,
        unit_kind=request.unit_kind.value,
        source_length=len(request.source_text),
        per_request_key=bool(api_key),
        trace_id=trace_id
    )

    progress_events: List[GenerationProgress] = []
    result = await generation_service.generate(
        unit_name=request.unit_name,
        unit_kind=request.unit_kind,
        source_text=request.source_text,
        knowledge_context=context,
        on_progress=progress_events.append,
        credential=api_key,
        block_name=request.block_name,
        item_name=request.item_name,
    )

    return GenerateResponse.from_result(trace_id, result, progress_events)


@app.post(
    "/api/v1/generation/verify-key",
    response_model=VerifyKeyResponse,
    tags=["Generation"],
    responses=error_responses(422, 503),
)
async def verify_key(request: VerifyKeyRequest, llm_client: OptionalLLMClientDep) -> VerifyKeyResponse:
    """
    Check an OpenRouter API key with a minimal request.

    **Request Model**: `VerifyKeyRequest`
    - api_key: key to check

    **Response Model**: `VerifyKeyResponse`
    - valid: whether the provider accepted the key
    - error: provider message when rejected

    **Possible Errors**:
    - 422: Invalid request body
    - 503: LLM client unavailable
    """
    trace_id = get_trace_id()

    if llm_client is None or not llm_client.is_connected():
        raise ServiceUnavailableError("LLM service is not available")

    valid, error = await llm_client.verify_credential(request.api_key)

    logger.info("API key verification completed", valid=valid, trace_id=trace_id)

    return VerifyKeyResponse(trace_id=trace_id, valid=valid, error=error)
