"""
Chunk Assembly Repository.

Merges per-chunk generated code into one procedure draft using a fixed
section template:

    banner
    PROCEDURE <name>_apex IS
      declarations
    BEGIN
      validations
      business logic (incl. "full" chunks)
      data operations
    EXCEPTION            (only if exception-handling chunks exist)
      exception handlers
    END <name>_apex;

Grouping is by chunk type; within a group results keep ascending order.
"""

import re
from typing import Iterable, List, Sequence

from forms2apex.constants import (
    DRAFT_BANNER_RULE,
    DRAFT_BANNER_TITLE,
    PACKAGE_SEPARATOR,
    TARGET_SUFFIX,
)
from forms2apex.domain.base_enums import ChunkType
from forms2apex.domain.generation import GeneratedChunk

_NON_IDENTIFIER_RE = re.compile(r"[^a-z0-9_]")

INDENT = 2


def sanitize_unit_name(unit_name: str) -> str:
    """Lower-case a unit name and replace non-identifier characters with '_'."""
    return _NON_IDENTIFIER_RE.sub("_", unit_name.lower())


def indent_code(code: str, spaces: int = INDENT) -> str:
    """Prefix every line of code with the given number of spaces."""
    prefix = " " * spaces
    return "\n".join(prefix + line for line in code.split("\n"))


class ChunkAssembler:
    """
    Repository for reassembling generated chunks.

    Pure: the same results and unit name always give byte-identical output.
    """

    def assemble(self, results: Sequence[GeneratedChunk], unit_name: str) -> str:
        """
        Assemble generated chunks into a single procedure draft.

        Args:
            results: Generated chunk outputs, in any order
            unit_name: Name of the unit being converted

        Returns:
            Assembled artifact text
        """
        ordered = sorted(results, key=lambda r: r.order)
        procedure_name = f"{sanitize_unit_name(unit_name)}{TARGET_SUFFIX}"

        lines: List[str] = [
            DRAFT_BANNER_RULE,
            DRAFT_BANNER_TITLE,
            f"-- Generated APEX Code for: {unit_name}",
            DRAFT_BANNER_RULE,
            "",
            f"PROCEDURE {procedure_name} IS",
        ]

        declarations = self._of_type(ordered, ChunkType.DECLARATIONS)
        if declarations:
            lines.append("  -- Declarations")
            lines.extend(indent_code(r.generated_code) for r in declarations)

        lines.append("BEGIN")

        sections = [
            ("  -- Validations", (ChunkType.VALIDATION,)),
            ("  -- Business Logic", (ChunkType.BUSINESS_LOGIC, ChunkType.FULL)),
            ("  -- Data Operations", (ChunkType.DML,)),
        ]
        for title, chunk_types in sections:
            group = self._of_type(ordered, *chunk_types)
            if group:
                lines.append(title)
                lines.extend(indent_code(r.generated_code) for r in group)
                lines.append("")

        handlers = self._of_type(ordered, ChunkType.EXCEPTION_HANDLING)
        if handlers:
            lines.append("EXCEPTION")
            lines.extend(indent_code(r.generated_code) for r in handlers)

        lines.append(f"END {procedure_name};")

        return "\n".join(lines)

    @staticmethod
    def wrap_with_draft_banner(code: str, unit_name: str) -> str:
        """Prefix single-request output with the draft/review banner."""
        return "\n".join([
            DRAFT_BANNER_RULE,
            DRAFT_BANNER_TITLE,
            f"-- Generated APEX Code for: {unit_name}",
            DRAFT_BANNER_RULE,
            "-- This code was automatically generated and requires",
            "-- developer review before production use.",
            DRAFT_BANNER_RULE,
            "",
            code,
        ])

    @staticmethod
    def build_package(form_name: str, procedures: Iterable[str]) -> str:
        """
        Wrap assembled procedures into one package body draft.

        Args:
            form_name: Form the procedures belong to
            procedures: Assembled procedure texts, in output order

        Returns:
            CREATE OR REPLACE PACKAGE BODY script ending with "/"
        """
        package_name = f"PKG_{form_name.upper()}{TARGET_SUFFIX.upper()}"

        lines: List[str] = [
            DRAFT_BANNER_RULE,
            DRAFT_BANNER_TITLE,
            f"-- APEX Package for: {form_name}",
            "-- Generated by Forms2APEX",
            DRAFT_BANNER_RULE,
            "",
            f"CREATE OR REPLACE PACKAGE BODY {package_name} IS",
            "",
        ]

        for index, procedure in enumerate(procedures):
            if index > 0:
                lines.extend(["", PACKAGE_SEPARATOR, ""])
            lines.append(procedure)

        lines.extend(["", f"END {package_name};", "/"])

        return "\n".join(lines)

    @staticmethod
    def _of_type(results: Sequence[GeneratedChunk], *chunk_types: ChunkType) -> List[GeneratedChunk]:
        return [r for r in results if r.chunk_type in chunk_types]
