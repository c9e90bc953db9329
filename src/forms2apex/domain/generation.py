"""
Generation pipeline models.

Value objects produced and consumed by the generation pipeline:
source blocks, size analysis, chunks, per-call results, progress events
and the final generation result.
"""

from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .base_enums import (
    ChunkType,
    GenerationErrorKind,
    GenerationStatus,
    GenerationStrategy,
    UnitKind,
)


class SourceBlock(BaseModel):
    """One logical unit of legacy source (trigger or procedure body)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Declared unit name")
    kind: UnitKind = Field(..., description="Trigger, program unit, validation or process")
    source_text: str = Field(..., description="Raw source text of the unit")
    block_name: Optional[str] = Field(default=None, description="Owning block (triggers only)")
    item_name: Optional[str] = Field(default=None, description="Owning item (triggers only)")


class Chunk(BaseModel):
    """A classified, contiguous slice of a source block."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Source lines joined by newlines")
    type: ChunkType = Field(..., description="Semantic classification")
    start_line: int = Field(..., ge=1, description="First line (1-based, inclusive)")
    end_line: int = Field(..., ge=1, description="Last line (1-based, inclusive)")
    order: int = Field(..., ge=0, description="Reassembly order")

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


class SizeAnalysis(BaseModel):
    """Size classification of a source block and the resulting strategy."""

    model_config = ConfigDict(frozen=True)

    line_count: int = Field(..., ge=0)
    estimated_token_count: int = Field(..., ge=0, description="Advisory only (chars / 4)")
    strategy: GenerationStrategy
    chunks: Optional[List[Chunk]] = Field(default=None, description="Absent for single strategy")

    @model_validator(mode="after")
    def validate_chunks_match_strategy(self) -> "SizeAnalysis":
        if self.strategy == GenerationStrategy.SINGLE and self.chunks is not None:
            raise ValueError("single strategy must not carry chunks")
        if self.strategy != GenerationStrategy.SINGLE and not self.chunks:
            raise ValueError(f"{self.strategy.value} strategy requires chunks")
        return self

    def describe(self) -> str:
        """Short human-readable description of the chosen strategy."""
        chunk_count = len(self.chunks) if self.chunks else None
        if self.strategy == GenerationStrategy.SINGLE:
            return f"Small code block ({self.line_count} lines) - single request"
        if self.strategy == GenerationStrategy.CHUNKED:
            return (
                f"Medium code block ({self.line_count} lines) - "
                f"will be split into {chunk_count or 'multiple'} chunks"
            )
        return (
            f"Large code block ({self.line_count} lines) - "
            f"multi-phase generation with {chunk_count or 'multiple'} chunks"
        )


class LLMCallResult(BaseModel):
    """Outcome of one (or a retried series of) remote generation call(s)."""

    success: bool
    raw_text: str = ""
    error: Optional[str] = None
    error_kind: Optional[GenerationErrorKind] = None
    attempts: int = 1

    @classmethod
    def ok(cls, raw_text: str) -> "LLMCallResult":
        return cls(success=True, raw_text=raw_text)

    @classmethod
    def failed(cls, kind: GenerationErrorKind, error: str) -> "LLMCallResult":
        return cls(success=False, error=error, error_kind=kind)

    @property
    def retryable(self) -> bool:
        kind = self.error_kind or GenerationErrorKind.UNKNOWN
        return kind.is_retryable


class GeneratedChunk(BaseModel):
    """Generated output for one chunk, kept with its source for review."""

    model_config = ConfigDict(frozen=True)

    original_code: str
    generated_code: str
    chunk_type: ChunkType
    order: int = Field(..., ge=0)


class GenerationProgress(BaseModel):
    """
    One progress event of an in-flight generation.

    Events are pushed to the caller's callback and never stored by the
    pipeline.
    """

    status: GenerationStatus
    current_unit: int = 0
    total_units: int = 0
    message: str = ""
    partial_artifact: Optional[str] = None


class ErrorDescriptor(BaseModel):
    """Why a generation run failed."""

    kind: GenerationErrorKind
    message: str
    failed_unit: Optional[int] = Field(default=None, description="1-based chunk number that failed")
    total_units: Optional[int] = None


class GenerationResult(BaseModel):
    """Final outcome of one generation run."""

    success: bool
    unit_name: str
    strategy: Optional[GenerationStrategy] = None
    artifact: str = ""
    explanation: Optional[str] = None
    per_chunk_results: Optional[List[GeneratedChunk]] = None
    partial_artifact: Optional[str] = None
    error: Optional[ErrorDescriptor] = None
    elapsed_time: float = Field(0.0, description="Wall-clock seconds spent in the run")


ProgressCallback = Callable[[GenerationProgress], Any]
