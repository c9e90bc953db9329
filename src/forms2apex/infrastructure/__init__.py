"""
Infrastructure layer for the Forms2APEX service.

Provides the remote LLM client used by the generation pipeline.
"""

from .llm_client import LLMClient

__all__ = ["LLMClient"]
