"""
Prompt Building Repository.

Builds the conversion prompts sent to the LLM: a fixed system instruction,
a form-context section, and a per-unit or per-chunk conversion request.
"""

from typing import Any, Dict, List, Optional

from forms2apex.domain.base_enums import ChunkType, UnitKind
from forms2apex.domain.knowledge import KnowledgeContext


SYSTEM_PROMPT = """You are an Oracle APEX code generator and documentation assistant. Your task is to convert Oracle Forms PL/SQL code to APEX-compatible PL/SQL AND explain what the code does.

STRICT OUTPUT FORMAT:
You MUST return a JSON object with exactly this structure:
{
  "explanation": {
    "summary": "Brief 1-2 sentence summary of what this code does",
    "purpose": "Why this code exists and its role in the application",
    "whatItDoes": ["Step 1: ...", "Step 2: ..."],
    "tablesAffected": ["TABLE_NAME: what operations (SELECT/INSERT/UPDATE/DELETE)"],
    "itemsUsed": ["ITEM_NAME: purpose"],
    "businessRules": ["Business rule 1", "Business rule 2"],
    "apexNotes": ["Important note about APEX implementation"]
  },
  "code": "-- Your APEX-compatible PL/SQL code here..."
}

CODE CONVERSION RULES:

1. APEX COMPATIBILITY:
   - Replace Forms-specific builtins with APEX equivalents or comments
   - Use :Pxx_ITEM_NAME format for page item references
   - Use apex_util, apex_application, apex_page APIs
   - Use apex_error.add_error for error handling

2. FORMS BUILTIN CONVERSIONS:
   - GO_BLOCK, GO_ITEM -> Comment: "-- APEX: Not needed, use region conditions"
   - SET_ITEM_PROPERTY -> Comment: "-- APEX: Use Dynamic Action or apex_util.set_session_state"
   - SYNCHRONIZE -> Remove (not applicable in APEX)
   - MESSAGE -> apex_application.g_notification
   - CLEAR_BLOCK -> Comment: "-- APEX: Use region refresh or DA"
   - EXECUTE_QUERY -> Comment: "-- APEX: Automatic in APEX, use region source"
   - SHOW_LOV -> Comment: "-- APEX: Use Popup LOV item type"
   - FORMS_OLE, HOST -> Comment: "-- APEX: Not supported, requires alternative implementation"

3. VARIABLE REFERENCES:
   - :BLOCK.ITEM -> :Pxx_ITEM (add comment with original reference)
   - :GLOBAL.xxx -> apex_util.get_session_state('G_XXX')
   - :PARAMETER.xxx -> apex_util.get_session_state('PXXX')
   - :SYSTEM.xxx -> Use appropriate APEX alternative or comment

4. IF NO EQUIVALENT EXISTS:
   - Add a clear comment: "-- APEX: No direct equivalent for [X], requires custom implementation"
   - Do NOT invent fake APIs or functions
   - Do NOT assume tables or columns exist

5. EXPLANATION RULES:
   - Write explanations in simple, clear language for someone unfamiliar with the code
   - Explain the business purpose, not just technical details
   - List every table that is read from or written to
   - Highlight any validation or business rules being enforced

6. CODE STYLE:
   - Keep original logic structure where possible
   - Add comments for significant transformations
   - Use consistent indentation (2 spaces)
   - Mark uncertain transformations with "-- TODO: Review"
"""

CHUNK_TYPE_DESCRIPTIONS: Dict[ChunkType, str] = {
    ChunkType.DECLARATIONS: "Variable declarations and constants",
    ChunkType.VALIDATION: "Validation and error checking logic",
    ChunkType.BUSINESS_LOGIC: "Core business logic",
    ChunkType.DML: "Database operations (INSERT/UPDATE/DELETE)",
    ChunkType.EXCEPTION_HANDLING: "Exception handling",
    ChunkType.FULL: "Complete code block",
}

_KIND_LABELS: Dict[UnitKind, str] = {
    UnitKind.TRIGGER: "Trigger",
    UnitKind.PROGRAM_UNIT: "Program Unit",
    UnitKind.VALIDATION: "Validation",
    UnitKind.PROCESS: "Process",
}

_RESPONSE_INSTRUCTION = (
    'Return a JSON object with "explanation" and "code" fields as specified in the system prompt.'
)


class PromptBuilder:
    """
    Repository for conversion prompt construction.

    Accepts a KnowledgeContext; any other context object is rendered with
    str() so callers can pass their own context types.
    """

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def build_context_section(self, context: Any) -> str:
        """Render the form-context block placed at the top of every prompt."""
        if not isinstance(context, KnowledgeContext):
            return "\n".join(["=== FORM CONTEXT ===", str(context), "==================="])

        lines: List[str] = [
            "=== FORM CONTEXT ===",
            f"Form Name: {context.form_name}",
            f"Screen Purpose: {context.screen_purpose}",
        ]

        if context.main_tables:
            lines.append(f"Main Tables: {', '.join(context.main_tables)}")

        if context.user_actions:
            lines.append("User Actions:")
            lines.extend(f"  - {action}: {desc}" for action, desc in context.user_actions.items())

        if context.business_rules:
            lines.append("Business Rules:")
            lines.extend(f"  {i}. {rule}" for i, rule in enumerate(context.business_rules, start=1))

        if context.target_patterns:
            lines.append("Suggested APEX Patterns:")
            lines.extend(f"  - {action}: {pattern}" for action, pattern in context.target_patterns.items())

        if context.additional_context:
            lines.append(f"Additional Context: {context.additional_context}")

        lines.append("===================")
        return "\n".join(lines)

    def build_single(
        self,
        name: str,
        kind: UnitKind,
        code: str,
        context: Any,
        block_name: Optional[str] = None,
        item_name: Optional[str] = None,
    ) -> str:
        """Build the prompt for converting a whole unit in one request."""
        lines: List[str] = [
            self.build_context_section(context),
            "",
            "=== CONVERSION REQUEST ===",
            f"Type: Oracle Forms {_KIND_LABELS[kind]}",
            f"Name: {name}",
        ]

        if kind == UnitKind.TRIGGER:
            if block_name:
                lines.append(f"Block: {block_name}")
            if item_name:
                lines.append(f"Item: {item_name}")
            lines.extend([
                "",
                "Convert this trigger to an APEX-compatible PL/SQL block:",
                "- For WHEN-BUTTON-PRESSED: Convert to a Process or Dynamic Action PL/SQL",
                "- For WHEN-VALIDATE-*: Convert to a Validation PL/SQL",
                "- For PRE-*/POST-*: Convert to a Process at appropriate execution point",
            ])
        elif kind == UnitKind.VALIDATION:
            lines.extend([
                "",
                "Convert this validation to an APEX Validation (PL/SQL Function Body returning error text):",
                "- Report failures with apex_error.add_error",
                "- Keep every rule the original enforces",
            ])
        elif kind == UnitKind.PROCESS:
            lines.extend([
                "",
                "Convert this logic to an APEX page Process (PL/SQL Code):",
                "- Pick the execution point matching the original timing",
                "- Use apex_util for session state access",
            ])
        else:
            lines.extend([
                "",
                "Convert this program unit to an APEX-compatible format:",
                "- Wrap in an APEX-friendly package procedure/function",
                "- Replace Forms builtins with APEX equivalents",
                "- Use apex_util for session state access",
            ])

        lines.extend(self._code_section("=== ORIGINAL FORMS CODE ===", code))
        lines.append(_RESPONSE_INSTRUCTION)
        return "\n".join(lines)

    def build_chunk(
        self,
        code: str,
        chunk_type: ChunkType,
        name: str,
        context: Any,
        chunk_index: int,
        total_chunks: int,
    ) -> str:
        """Build the prompt for converting one chunk of a larger unit."""
        lines: List[str] = [
            self.build_context_section(context),
            "",
            "=== CHUNK CONVERSION REQUEST ===",
            f"Unit Name: {name}",
            f"Chunk: {chunk_index} of {total_chunks}",
            f"Section Type: {CHUNK_TYPE_DESCRIPTIONS[chunk_type]}",
            "",
            "Convert ONLY this section to APEX-compatible PL/SQL:",
            "- This is part of a larger procedure being converted in chunks",
            "- Maintain variable names and structure for assembly",
            "- Focus on converting Forms builtins and references",
        ]
        lines.extend(self._code_section("=== ORIGINAL FORMS CODE (CHUNK) ===", code))
        lines.append(
            'Return a JSON object with "explanation" and "code" fields. '
            "For the explanation, focus on what THIS chunk does."
        )
        return "\n".join(lines)

    @staticmethod
    def _code_section(title: str, code: str) -> List[str]:
        return ["", title, "```plsql", code, "```", ""]
