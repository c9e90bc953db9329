"""
Domain package for the Forms2APEX generation service.

This package contains the domain models, enums and value objects
used throughout the generation pipeline.
"""

from .base_enums import (
    ChunkType,
    GenerationErrorKind,
    GenerationStatus,
    GenerationStrategy,
    UnitKind,
)
from .explanation import CodeExplanation, ParsedResponse
from .generation import (
    Chunk,
    ErrorDescriptor,
    GeneratedChunk,
    GenerationProgress,
    GenerationResult,
    LLMCallResult,
    ProgressCallback,
    SizeAnalysis,
    SourceBlock,
)
from .knowledge import KnowledgeContext
from .pipeline import GenerationState
from .ports import IGenerationClient, IPromptBuilder

__all__ = [
    # Enums
    "ChunkType",
    "GenerationErrorKind",
    "GenerationStatus",
    "GenerationStrategy",
    "UnitKind",

    # Generation models
    "Chunk",
    "ErrorDescriptor",
    "GeneratedChunk",
    "GenerationProgress",
    "GenerationResult",
    "LLMCallResult",
    "ProgressCallback",
    "SizeAnalysis",
    "SourceBlock",

    # Explanation
    "CodeExplanation",
    "ParsedResponse",

    # Context
    "KnowledgeContext",

    # Pipeline
    "GenerationState",

    # Collaborator protocols
    "IGenerationClient",
    "IPromptBuilder",
]
