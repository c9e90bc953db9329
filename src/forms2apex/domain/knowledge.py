"""
Knowledge context passed into prompt construction.

The generation pipeline never inspects these fields; it hands the object
to the prompt builder untouched.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class KnowledgeContext(BaseModel):
    """Domain metadata about the form a unit belongs to."""

    model_config = ConfigDict(frozen=True)

    form_name: str = Field(..., description="Name of the source form module")
    screen_purpose: str = Field(
        default="Data management form",
        description="Inferred purpose of the screen",
    )
    main_tables: List[str] = Field(default_factory=list, description="Base tables of the form")
    user_actions: Dict[str, str] = Field(
        default_factory=dict,
        description="User action name -> description",
    )
    business_rules: List[str] = Field(default_factory=list, description="Known business rules")
    target_patterns: Dict[str, str] = Field(
        default_factory=dict,
        description="Action name -> suggested APEX implementation pattern",
    )
    additional_context: Optional[str] = Field(default=None, description="Free-form notes")

    @classmethod
    def empty(cls, form_name: str = "FORM") -> "KnowledgeContext":
        """Context with defaults only, for units generated without form analysis."""
        return cls(form_name=form_name)
