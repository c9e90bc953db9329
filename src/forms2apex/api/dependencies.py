"""
FastAPI dependencies for dependency injection.

This module provides reusable dependencies that can be injected into
API route handlers following proper layered architecture:
- Services (GenerationService) and repositories (SizeAnalyzer) for business logic
- Settings for configuration
- Optional client dependency for health checks and key verification

Routes should depend on services, not infrastructure clients directly.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from ..infrastructure.llm_client import LLMClient
from ..repositories.chunk_assembly import ChunkAssembler
from ..repositories.generation_retry import RetryingGenerator
from ..repositories.prompt_building import PromptBuilder
from ..repositories.response_parsing import ResponseParser
from ..repositories.semantic_chunking import SemanticChunker
from ..repositories.size_analysis import SizeAnalyzer
from ..services.generation_service import GenerationService
from ..config import Settings


def get_settings(request: Request) -> Settings:
    """
    Dependency to get the settings from app state.

    Usage in routes:
        @app.get("/config")
        async def get_config(settings: SettingsDep):
            return {"log_level": settings.app.log_level}

    Args:
        request: FastAPI request object

    Returns:
        Settings instance

    Raises:
        RuntimeError: If settings are not initialized
    """
    if not hasattr(request.app.state, "settings"):
        raise RuntimeError("Settings not initialized")

    return request.app.state.settings


def get_llm_client_optional(request: Request) -> LLMClient | None:
    """Get LLM client if available, None otherwise."""
    return getattr(request.app.state, "llm_client", None)


def get_api_key(x_api_key: Annotated[Optional[str], Header()] = None) -> Optional[str]:
    """Per-request provider key from the X-API-Key header, if any."""
    return x_api_key or None


def get_size_analyzer(request: Request) -> SizeAnalyzer:
    """
    Dependency to get a SizeAnalyzer instance.

    Analysis is local and never touches the LLM client.

    Raises:
        RuntimeError: If settings are not initialized
    """
    settings = get_settings(request)
    return SizeAnalyzer(settings.generation, SemanticChunker(settings.generation))


def get_generation_service(request: Request) -> GenerationService:
    """
    Dependency to get a GenerationService instance.

    This creates a GenerationService with full repository tree:
    GenerationService (orchestrator)
      ├── SizeAnalyzer (strategy selection)
      │     └── SemanticChunker (line classification)
      ├── PromptBuilder (prompt construction)
      ├── RetryingGenerator (retry/backoff)
      │     └── LLMClient (shared, from app state)
      ├── ResponseParser (code/explanation extraction)
      └── ChunkAssembler (procedure reassembly)

    Usage in routes:
        @app.post("/generation/generate")
        async def generate(generation_service: GenerationServiceDep):
            result = await generation_service.generate(...)
            return result

    Args:
        request: FastAPI request object

    Returns:
        GenerationService instance

    Raises:
        RuntimeError: If required clients are not initialized
    """
    if not hasattr(request.app.state, "llm_client"):
        raise RuntimeError("LLM client not initialized")
    if not hasattr(request.app.state, "settings"):
        raise RuntimeError("Settings not initialized")

    llm_client = request.app.state.llm_client
    settings = request.app.state.settings

    # Build repositories
    size_analyzer = SizeAnalyzer(settings.generation, SemanticChunker(settings.generation))
    retrying_generator = RetryingGenerator(client=llm_client, config=settings.generation)

    # Build GenerationService (thin orchestrator)
    generation_service = GenerationService(
        size_analyzer=size_analyzer,
        prompt_builder=PromptBuilder(),
        retrying_generator=retrying_generator,
        response_parser=ResponseParser(),
        chunk_assembler=ChunkAssembler(),
        config=settings.generation,
    )

    return generation_service


# Type aliases for cleaner dependency injection
# Service dependencies (used in API routes)
GenerationServiceDep = Annotated[GenerationService, Depends(get_generation_service)]
SizeAnalyzerDep = Annotated[SizeAnalyzer, Depends(get_size_analyzer)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
ApiKeyDep = Annotated[Optional[str], Depends(get_api_key)]

# Optional client dependencies (used in health checks)
OptionalLLMClientDep = Annotated[LLMClient | None, Depends(get_llm_client_optional)]
