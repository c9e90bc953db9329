"""
Collaborator protocols for the generation pipeline.

The orchestrator depends on these shapes only; LLMClient and PromptBuilder
are the default implementations, and tests substitute fakes.
"""

from typing import Any, Optional, Protocol

from .base_enums import ChunkType, UnitKind
from .generation import LLMCallResult


class IGenerationClient(Protocol):
    """Performs one remote generation call and reports failures as values."""

    async def call_once(
        self,
        prompt: str,
        system_prompt: str,
        credential: Optional[str] = None,
    ) -> LLMCallResult:
        """Send one request; must not raise for remote failures."""
        ...


class IPromptBuilder(Protocol):
    """Turns source code plus opaque context into request prompts."""

    @property
    def system_prompt(self) -> str:
        """Fixed system instruction sent with every request."""
        ...

    def build_single(
        self,
        name: str,
        kind: UnitKind,
        code: str,
        context: Any,
        block_name: Optional[str] = None,
        item_name: Optional[str] = None,
    ) -> str:
        """Prompt for converting a whole unit in one request."""
        ...

    def build_chunk(
        self,
        code: str,
        chunk_type: ChunkType,
        name: str,
        context: Any,
        chunk_index: int,
        total_chunks: int,
    ) -> str:
        """Prompt for converting one chunk (chunk_index is 1-based)."""
        ...
