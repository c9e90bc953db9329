"""Unit tests for the semantic chunker."""

import pytest

from forms2apex.config import GenerationConfig
from forms2apex.domain.base_enums import ChunkType
from forms2apex.repositories.semantic_chunking import (
    SemanticChunker,
    is_dml_line,
    is_validation_line,
)


PROCEDURE_SOURCE = "\n".join([
    "DECLARE",
    "  v_total NUMBER;",
    "BEGIN",
    "  v_total := 0;",
    "  INSERT INTO emp_log VALUES (1);",
    "  COMMIT;",
    "EXCEPTION",
    "  WHEN OTHERS THEN",
    "    NULL;",
    "END;",
])

VALIDATION_SOURCE = "\n".join([
    "v_count := 0;",
    "IF :EMP.SAL IS NULL THEN",
    "  RAISE_APPLICATION_ERROR(-20001, 'Salary required');",
    "END IF;",
    "UPDATE emp SET sal = 0 WHERE empno = :EMP.EMPNO;",
])


@pytest.fixture
def chunker():
    return SemanticChunker(GenerationConfig())


class TestChunkClassification:
    """Tests for keyword-driven chunk boundaries."""

    def test_procedure_sections(self, chunker):
        """DECLARE/BEGIN/DML/EXCEPTION lines open chunks of matching types."""
        chunks = chunker.chunk(PROCEDURE_SOURCE)

        assert [c.type for c in chunks] == [
            ChunkType.DECLARATIONS,
            ChunkType.BUSINESS_LOGIC,
            ChunkType.DML,
            ChunkType.EXCEPTION_HANDLING,
        ]
        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 2), (3, 4), (5, 6), (7, 10)]

    def test_validation_then_dml(self, chunker):
        """Conditional null checks and raised errors form a validation chunk."""
        chunks = chunker.chunk(VALIDATION_SOURCE)

        assert [c.type for c in chunks] == [
            ChunkType.BUSINESS_LOGIC,
            ChunkType.VALIDATION,
            ChunkType.DML,
        ]
        assert chunks[1].code.startswith("IF :EMP.SAL IS NULL")
        assert chunks[1].line_count == 3

    def test_keywords_are_case_insensitive(self, chunker):
        """Lower-case keywords are recognised."""
        chunks = chunker.chunk("declare\n  x number;\nbegin\n  null;\nend;")

        assert chunks[0].type == ChunkType.DECLARATIONS
        assert chunks[1].type == ChunkType.BUSINESS_LOGIC

    def test_lines_without_markers_default_to_business_logic(self, chunker):
        chunks = chunker.chunk("x := 1;\ny := 2;")

        assert len(chunks) == 1
        assert chunks[0].type == ChunkType.BUSINESS_LOGIC

    def test_update_without_set_is_not_dml(self, chunker):
        """UPDATE only counts as DML with SET on the same line."""
        chunks = chunker.chunk("x := 1;\nUPDATE emp\n  SET sal = 0;")

        assert [c.type for c in chunks] == [ChunkType.BUSINESS_LOGIC]

    def test_declarations_absorb_lines_until_begin(self, chunker):
        """Inside declarations, only BEGIN ends the section."""
        chunks = chunker.chunk("DECLARE\n  CURSOR c IS SELECT 1 FROM dual;\n  x NUMBER;\nBEGIN\n  NULL;")

        assert chunks[0].type == ChunkType.DECLARATIONS
        assert chunks[0].line_count == 3


class TestChunkInvariants:
    """Tests for ordering, coverage and size limits."""

    def test_orders_are_contiguous_from_zero(self, chunker):
        chunks = chunker.chunk(PROCEDURE_SOURCE + "\n" + VALIDATION_SOURCE)

        assert [c.order for c in chunks] == list(range(len(chunks)))

    def test_join_reproduces_input(self, chunker):
        """Joining chunk code with newlines rebuilds the source exactly."""
        source = PROCEDURE_SOURCE + "\n\n" + VALIDATION_SOURCE + "\n"
        chunks = chunker.chunk(source)

        assert "\n".join(c.code for c in chunks) == source

    def test_line_ranges_cover_every_line_once(self, chunker):
        source = PROCEDURE_SOURCE + "\n" + VALIDATION_SOURCE
        chunks = chunker.chunk(source)

        covered = [n for c in chunks for n in range(c.start_line, c.end_line + 1)]
        assert covered == list(range(1, len(source.split("\n")) + 1))

    def test_force_flush_at_limit(self, chunker):
        """A run of 400 plain lines splits at 150 lines and keeps its type."""
        source = "\n".join(["  v := v + 1;"] * 400)
        chunks = chunker.chunk(source)

        assert [c.line_count for c in chunks] == [150, 150, 100]
        assert all(c.type == ChunkType.BUSINESS_LOGIC for c in chunks)
        assert max(c.line_count for c in chunks) <= GenerationConfig().chunk_flush_lines

    def test_custom_flush_limit(self):
        chunker = SemanticChunker(GenerationConfig(chunk_target_lines=10, chunk_flush_factor=1.0))
        chunks = chunker.chunk("\n".join(["NULL;"] * 25))

        assert [c.line_count for c in chunks] == [10, 10, 5]

    def test_empty_input_is_single_full_chunk(self, chunker):
        chunks = chunker.chunk("")

        assert len(chunks) == 1
        assert chunks[0].type == ChunkType.FULL
        assert (chunks[0].start_line, chunks[0].end_line) == (1, 1)
        assert chunks[0].code == ""

    def test_whitespace_input_is_single_full_chunk(self, chunker):
        chunks = chunker.chunk("  \n\t\n")

        assert len(chunks) == 1
        assert chunks[0].type == ChunkType.FULL
        assert chunks[0].end_line == 3


class TestLineMarkers:
    """Tests for the line predicates."""

    @pytest.mark.parametrize("line", [
        "INSERT INTO EMP VALUES (1);",
        "DELETE FROM EMP;",
        "COMMIT;",
        "ROLLBACK;",
        "UPDATE EMP SET SAL = 0;",
    ])
    def test_dml_lines(self, line):
        assert is_dml_line(line)

    def test_plain_update_is_not_dml(self):
        assert not is_dml_line("UPDATE EMP")

    def test_validation_lines(self):
        assert is_validation_line("IF :B.X IS NULL THEN")
        assert is_validation_line("ELSIF CHECK_RANGE(:B.X) THEN")
        assert is_validation_line("FND_MESSAGE.SET_NAME('AR', 'BAD');")
        assert not is_validation_line("IF :B.X > 0 THEN")
        assert not is_validation_line("V_DIFF := :B.X IS NULL;")
