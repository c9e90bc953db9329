"""
API request models for the Forms2APEX service.

These models define the structure for all incoming API requests,
ensuring type safety and validation at API boundaries.

All fields include detailed descriptions that appear in Swagger/OpenAPI documentation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .base_enums import UnitKind
from .knowledge import KnowledgeContext


class AnalyzeRequest(BaseModel):
    """Request model for size analysis without generation."""

    source_text: str = Field(
        ...,
        description="Raw Forms PL/SQL source of one trigger or program unit. "
                    "Lines are counted by splitting on newlines.",
        json_schema_extra={"example": "BEGIN\n  :EMP.SAL := 0;\nEND;"}
    )


class GenerateRequest(BaseModel):
    """
    Request model for APEX code generation.

    The provider API key is taken from the X-API-Key header, falling back
    to the server's configured key.
    """

    unit_name: str = Field(
        ...,
        description="Declared name of the trigger or program unit. "
                    "Example: 'WHEN-VALIDATE-ITEM' or 'CALC_TOTALS'",
        min_length=1,
        max_length=200,
    )
    unit_kind: UnitKind = Field(
        default=UnitKind.PROGRAM_UNIT,
        description="Kind of unit; selects the prompt flavour only."
    )
    source_text: str = Field(
        ...,
        description="Raw Forms PL/SQL source to convert."
    )
    form_name: Optional[str] = Field(
        default=None,
        description="Name of the form the unit belongs to. "
                    "Used to name the default knowledge context.",
        max_length=200,
    )
    block_name: Optional[str] = Field(
        default=None,
        description="Owning data block (triggers only)."
    )
    item_name: Optional[str] = Field(
        default=None,
        description="Owning item (item-level triggers only)."
    )
    knowledge_context: Optional[KnowledgeContext] = Field(
        default=None,
        description="Business context about the form. "
                    "If not provided, a minimal context named after form_name is used."
    )


class VerifyKeyRequest(BaseModel):
    """Request model for provider API key verification."""

    api_key: str = Field(
        ...,
        description="OpenRouter API key to check with a minimal request.",
        min_length=1,
    )
