"""
API response models for the Forms2APEX service.

These models define the structure for all outgoing API responses,
ensuring consistent response formats and type safety.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .base_enums import GenerationErrorKind, GenerationStrategy
from .generation import (
    Chunk,
    ErrorDescriptor,
    GeneratedChunk,
    GenerationProgress,
    GenerationResult,
    SizeAnalysis,
)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Health status", examples=["healthy", "degraded", "unhealthy"])
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Application version")
    llm_service_status: str = Field(..., description="LLM service status")
    default_key_configured: bool = Field(
        ..., description="Whether a server-side OpenRouter key is configured"
    )


class ErrorResponse(BaseModel):
    """Response model for error responses."""

    error: str = Field(..., description="Error type or category")
    message: str = Field(..., description="Human-readable error message")
    kind: Optional[GenerationErrorKind] = Field(
        default=None,
        description="Generation error kind, when the failure is one a run could also report"
    )
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
    trace_id: Optional[str] = Field(
        default=None,
        description="Trace ID for debugging"
    )
    timestamp: datetime = Field(..., description="Error timestamp")


class AnalyzeResponse(BaseModel):
    """Response model for size analysis."""

    trace_id: str = Field(..., description="Request trace ID")
    line_count: int = Field(..., description="Number of source lines")
    estimated_token_count: int = Field(..., description="Advisory token estimate (chars / 4)")
    strategy: GenerationStrategy = Field(..., description="Selected generation strategy")
    description: str = Field(..., description="Human-readable strategy summary")
    chunks: Optional[List[Chunk]] = Field(
        default=None,
        description="Semantic chunks (absent for the single strategy)"
    )

    @classmethod
    def from_analysis(cls, trace_id: str, analysis: SizeAnalysis) -> "AnalyzeResponse":
        return cls(
            trace_id=trace_id,
            line_count=analysis.line_count,
            estimated_token_count=analysis.estimated_token_count,
            strategy=analysis.strategy,
            description=analysis.describe(),
            chunks=analysis.chunks,
        )


class GenerateResponse(BaseModel):
    """
    Response model for code generation.

    Failures of the remote generation are reported in-band (success=False
    with an error descriptor), not as HTTP errors, so that a partial
    artifact can still be returned.
    """

    trace_id: str = Field(..., description="Request trace ID")
    success: bool = Field(..., description="Whether generation completed")
    unit_name: str = Field(..., description="Name of the generated unit")
    strategy: Optional[GenerationStrategy] = Field(default=None, description="Strategy used")
    artifact: str = Field(default="", description="Generated APEX PL/SQL (empty on failure)")
    explanation: Optional[str] = Field(default=None, description="Markdown explanation")
    per_chunk_results: Optional[List[GeneratedChunk]] = Field(
        default=None,
        description="Per-chunk outputs (chunked strategies only)"
    )
    partial_artifact: Optional[str] = Field(
        default=None,
        description="Assembly of the chunks completed before a failure"
    )
    error: Optional[ErrorDescriptor] = Field(default=None, description="Failure description")
    elapsed_time: float = Field(..., description="Wall-clock seconds spent generating")
    progress_events: List[GenerationProgress] = Field(
        default_factory=list,
        description="Progress events emitted during the run, in order"
    )

    @classmethod
    def from_result(
        cls,
        trace_id: str,
        result: GenerationResult,
        progress_events: List[GenerationProgress],
    ) -> "GenerateResponse":
        return cls(
            trace_id=trace_id,
            progress_events=progress_events,
            **result.model_dump(),
        )


class VerifyKeyResponse(BaseModel):
    """Response model for API key verification."""

    trace_id: str = Field(..., description="Request trace ID")
    valid: bool = Field(..., description="Whether the key was accepted by the provider")
    error: Optional[str] = Field(default=None, description="Reason the key was rejected")
