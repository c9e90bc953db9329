"""Unit tests for ChunkAssembler."""

import pytest

from forms2apex.domain.base_enums import ChunkType
from forms2apex.domain.generation import GeneratedChunk
from forms2apex.repositories.chunk_assembly import (
    ChunkAssembler,
    indent_code,
    sanitize_unit_name,
)


def _result(order: int, chunk_type: ChunkType, code: str) -> GeneratedChunk:
    return GeneratedChunk(
        original_code=f"-- original {order}",
        generated_code=code,
        chunk_type=chunk_type,
        order=order,
    )


@pytest.fixture
def assembler():
    return ChunkAssembler()


@pytest.fixture
def results():
    return [
        _result(0, ChunkType.DECLARATIONS, "v_total NUMBER;"),
        _result(1, ChunkType.BUSINESS_LOGIC, "v_total := 0;"),
        _result(2, ChunkType.DML, "INSERT INTO emp_log VALUES (1);"),
        _result(3, ChunkType.VALIDATION, "IF :P1_SAL IS NULL THEN\n  apex_error.add_error('x');\nEND IF;"),
        _result(4, ChunkType.EXCEPTION_HANDLING, "WHEN OTHERS THEN\n  RAISE;"),
    ]


class TestAssemble:
    """Tests for the procedure template."""

    def test_section_order(self, assembler, results):
        """Sections follow declarations, validations, logic, data, exceptions."""
        artifact = assembler.assemble(results, "SAVE_EMP")

        positions = [
            artifact.index(marker) for marker in [
                "PROCEDURE save_emp_apex IS",
                "  -- Declarations",
                "BEGIN",
                "  -- Validations",
                "  -- Business Logic",
                "  -- Data Operations",
                "EXCEPTION",
                "END save_emp_apex;",
            ]
        ]
        assert positions == sorted(positions)

    def test_banner(self, assembler, results):
        artifact = assembler.assemble(results, "SAVE_EMP")

        assert artifact.startswith("-- ============================================\n-- DRAFT - REVIEW REQUIRED\n")
        assert "-- Generated APEX Code for: SAVE_EMP" in artifact

    def test_code_is_indented(self, assembler, results):
        artifact = assembler.assemble(results, "SAVE_EMP")

        assert "\n  v_total NUMBER;\n" in artifact
        assert "\n    apex_error.add_error('x');\n" in artifact

    def test_input_order_does_not_matter(self, assembler, results):
        """Assembly sorts by order and is deterministic."""
        forward = assembler.assemble(results, "SAVE_EMP")
        backward = assembler.assemble(list(reversed(results)), "SAVE_EMP")

        assert forward == backward
        assert forward == assembler.assemble(results, "SAVE_EMP")

    def test_same_type_keeps_ascending_order(self, assembler):
        artifact = assembler.assemble([
            _result(2, ChunkType.BUSINESS_LOGIC, "second;"),
            _result(0, ChunkType.BUSINESS_LOGIC, "first;"),
        ], "X")

        assert artifact.index("first;") < artifact.index("second;")

    def test_all_declarations_kept(self, assembler):
        artifact = assembler.assemble([
            _result(0, ChunkType.DECLARATIONS, "a NUMBER;"),
            _result(1, ChunkType.DECLARATIONS, "b NUMBER;"),
        ], "X")

        assert "  a NUMBER;" in artifact
        assert "  b NUMBER;" in artifact

    def test_no_exception_section_without_handlers(self, assembler):
        artifact = assembler.assemble([_result(0, ChunkType.BUSINESS_LOGIC, "NULL;")], "X")

        assert "EXCEPTION" not in artifact
        assert "  -- Declarations" not in artifact

    def test_full_chunks_go_to_business_logic(self, assembler):
        artifact = assembler.assemble([_result(0, ChunkType.FULL, "NULL;")], "X")

        assert "  -- Business Logic\n  NULL;" in artifact

    def test_name_is_sanitized(self, assembler):
        artifact = assembler.assemble([_result(0, ChunkType.BUSINESS_LOGIC, "NULL;")], "WHEN-VALIDATE-ITEM")

        assert "PROCEDURE when_validate_item_apex IS" in artifact
        assert "END when_validate_item_apex;" in artifact
        assert "-- Generated APEX Code for: WHEN-VALIDATE-ITEM" in artifact


class TestHelpers:
    """Tests for module helpers and static builders."""

    def test_sanitize_unit_name(self):
        assert sanitize_unit_name("Post-Query.Emp 2") == "post_query_emp_2"

    def test_indent_code(self):
        assert indent_code("a\nb") == "  a\n  b"
        assert indent_code("a", spaces=4) == "    a"

    def test_wrap_with_draft_banner(self):
        wrapped = ChunkAssembler.wrap_with_draft_banner("NULL;", "CALC")

        assert wrapped.startswith("-- ============================================\n-- DRAFT - REVIEW REQUIRED")
        assert "-- Generated APEX Code for: CALC" in wrapped
        assert "-- developer review before production use." in wrapped
        assert wrapped.endswith("\n\nNULL;")

    def test_build_package(self):
        package = ChunkAssembler.build_package("emp_form", ["PROCEDURE a IS ...", "PROCEDURE b IS ..."])

        assert "CREATE OR REPLACE PACKAGE BODY PKG_EMP_FORM_APEX IS" in package
        assert package.index("PROCEDURE a") < package.index("PROCEDURE b")
        assert "  -- ----------------------------------------" in package
        assert package.endswith("END PKG_EMP_FORM_APEX;\n/")
