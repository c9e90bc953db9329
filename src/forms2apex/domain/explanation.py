"""
Structured explanation returned alongside generated code.

Field aliases follow the JSON keys the model is instructed to emit.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CodeExplanation(BaseModel):
    """Plain-language explanation of a converted unit or chunk."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    summary: str = Field(..., description="One or two sentence summary")
    purpose: Optional[str] = Field(default=None, description="Role of the code in the application")
    steps: List[str] = Field(default_factory=list, alias="whatItDoes")
    tables_affected: List[str] = Field(default_factory=list, alias="tablesAffected")
    items_used: List[str] = Field(default_factory=list, alias="itemsUsed")
    business_rules: List[str] = Field(default_factory=list, alias="businessRules")
    target_notes: List[str] = Field(default_factory=list, alias="apexNotes")

    def to_markdown(self) -> str:
        """Render the explanation as markdown for display."""
        lines: List[str] = ["## What This Code Does", "", f"**Summary:** {self.summary}", ""]

        if self.purpose:
            lines.extend([f"**Purpose:** {self.purpose}", ""])

        if self.steps:
            lines.append("### Step-by-Step:")
            lines.extend(f"{i}. {step}" for i, step in enumerate(self.steps, start=1))
            lines.append("")

        sections = [
            ("### Database Tables Affected:", self.tables_affected, "- "),
            ("### UI Items Used:", self.items_used, "- "),
            ("### Business Rules:", self.business_rules, "- "),
            ("### APEX Implementation Notes:", self.target_notes, "- ⚠️ "),
        ]
        for title, entries, bullet in sections:
            if entries:
                lines.append(title)
                lines.extend(f"{bullet}{entry}" for entry in entries)
                lines.append("")

        return "\n".join(lines).rstrip()


class ParsedResponse(BaseModel):
    """Code and optional explanation extracted from a raw model response."""

    code: str
    explanation: Optional[CodeExplanation] = None
