"""
Pipeline state for one generation run.

Created fresh by every call to GenerationService.generate() and dropped
when the run returns; nothing here is shared between runs.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .base_enums import GenerationStatus
from .generation import ErrorDescriptor, GeneratedChunk, SizeAnalysis, SourceBlock


@dataclass
class GenerationState:
    """
    Mutable state passed through the generation steps.

    Tracks the analysis, completed chunk outputs and the terminal error
    as a unit moves through analyzing, generating and assembling.
    """

    # Input
    block: SourceBlock
    context: Any
    credential: Optional[str]
    started_at: float

    # State machine position
    status: GenerationStatus = GenerationStatus.IDLE

    # Analysis
    analysis: Optional[SizeAnalysis] = None

    # Per-chunk outputs, in completion (= source) order
    chunk_results: List[GeneratedChunk] = field(default_factory=list)
    explanations: List[str] = field(default_factory=list)

    # Output
    artifact: Optional[str] = None
    explanation: Optional[str] = None

    # Error tracking
    error: Optional[ErrorDescriptor] = None
