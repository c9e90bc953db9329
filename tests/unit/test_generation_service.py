"""Unit tests for the GenerationService orchestrator with a scripted client."""

import asyncio
import json
import re

import pytest

from forms2apex.config import GenerationConfig
from forms2apex.domain.base_enums import (
    ChunkType,
    GenerationErrorKind,
    GenerationStatus,
    GenerationStrategy,
    UnitKind,
)
from forms2apex.domain.knowledge import KnowledgeContext
from forms2apex.repositories.chunk_assembly import ChunkAssembler
from forms2apex.repositories.generation_retry import RetryingGenerator
from forms2apex.repositories.prompt_building import PromptBuilder
from forms2apex.repositories.response_parsing import ResponseParser
from forms2apex.repositories.semantic_chunking import SemanticChunker
from forms2apex.repositories.size_analysis import SizeAnalyzer
from forms2apex.services.generation_service import GenerationService

from tests.fakes import FakeGenerationClient, failed, ok


CONTEXT = KnowledgeContext(form_name="EMP_FORM", main_tables=["EMP"])

SMALL_SOURCE = "\n".join(["BEGIN"] + ["  :EMP.SAL := :EMP.SAL + 1;"] * 48 + ["END;"])

# DECLARE(2) + BEGIN/logic(148) + DML(1) + EXCEPTION(4) = 155 lines, 4 chunks
MEDIUM_SOURCE = "\n".join(
    ["DECLARE", "  v NUMBER;", "BEGIN"]
    + ["  v := v + 1;"] * 147
    + ["  INSERT INTO emp_log VALUES (v);", "EXCEPTION", "  WHEN OTHERS THEN", "    RAISE;", "END;"]
)

# 500 lines: declarations, 4 force-flushed logic chunks, a validation written after
# the logic, DML with two markers, handler
LARGE_SOURCE = "\n".join(
    ["DECLARE", "  v NUMBER;", "BEGIN"]
    + ["  v := v + 1;"] * 488
    + [
        "  IF :EMP.SAL IS NULL THEN",
        "    RAISE_APPLICATION_ERROR(-20001, 'Salary required');",
        "  END IF;",
    ]
    + ["  INSERT INTO emp_log VALUES (v);", "  COMMIT;", "EXCEPTION", "  WHEN OTHERS THEN", "    RAISE;", "END;"]
)


def _chunk_reply(prompt: str):
    """Answer a chunk prompt with JSON naming the chunk number."""
    number = re.search(r"Chunk: (\d+) of \d+", prompt).group(1)
    return ok(json.dumps({
        "explanation": {"summary": f"Part {number}"},
        "code": f"-- generated {number}",
    }))


class _Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        self.now += 0.5
        return self.now


def _service(client, sleep_recorder, config=None, prompt_builder=None):
    config = config or GenerationConfig()
    return GenerationService(
        size_analyzer=SizeAnalyzer(config, SemanticChunker(config)),
        prompt_builder=prompt_builder or PromptBuilder(),
        retrying_generator=RetryingGenerator(client, config, sleep=sleep_recorder),
        response_parser=ResponseParser(),
        chunk_assembler=ChunkAssembler(),
        config=config,
        clock=_Clock(),
    )


def _statuses(events):
    """Status sequence with consecutive duplicates collapsed."""
    collapsed = []
    for event in events:
        if not collapsed or collapsed[-1] != event.status:
            collapsed.append(event.status)
    return collapsed


class TestSingleStrategy:
    """Small units are generated with one request."""

    async def test_small_unit(self, sleep_recorder):
        reply = json.dumps({
            "explanation": {"summary": "Raises salary.", "whatItDoes": ["Adds one"]},
            "code": "```plsql\n:P1_SAL := :P1_SAL + 1;\n```",
        })
        client = FakeGenerationClient([ok(reply)])
        events = []

        result = await _service(client, sleep_recorder).generate(
            "RAISE_SAL", UnitKind.PROGRAM_UNIT, SMALL_SOURCE, CONTEXT, on_progress=events.append,
        )

        assert result.success
        assert result.strategy == GenerationStrategy.SINGLE
        assert client.call_count == 1
        assert result.artifact.startswith("-- ============================================\n-- DRAFT - REVIEW REQUIRED")
        assert result.artifact.endswith(":P1_SAL := :P1_SAL + 1;")
        assert "**Summary:** Raises salary." in result.explanation
        assert result.per_chunk_results is None
        assert result.error is None
        assert result.elapsed_time > 0

        assert [e.message for e in events] == [
            "Analyzing code structure...",
            "Generating APEX code with explanation (50 lines)...",
            "Attempt 1/3...",
            "Generation complete!",
        ]
        assert _statuses(events) == [
            GenerationStatus.ANALYZING,
            GenerationStatus.GENERATING,
            GenerationStatus.COMPLETE,
        ]

    async def test_trigger_prompt_carries_block_and_item(self, sleep_recorder):
        client = FakeGenerationClient([ok("NULL;")])

        await _service(client, sleep_recorder).generate(
            "WHEN-VALIDATE-ITEM", UnitKind.TRIGGER, "NULL;", CONTEXT,
            block_name="EMP", item_name="SAL",
        )

        assert "Block: EMP" in client.prompts[0]
        assert "Item: SAL" in client.prompts[0]

    async def test_plain_text_response(self, sleep_recorder):
        """A response with no JSON or fence becomes the code as-is."""
        client = FakeGenerationClient([ok("BEGIN NULL; END;")])

        result = await _service(client, sleep_recorder).generate(
            "X", UnitKind.PROCESS, "NULL;", CONTEXT,
        )

        assert result.success
        assert result.artifact.endswith("\n\nBEGIN NULL; END;")
        assert result.explanation is None

    async def test_invalid_credential_fails_once(self, sleep_recorder):
        client = FakeGenerationClient([failed(GenerationErrorKind.INVALID_CREDENTIAL, "No API key provided")])
        events = []

        result = await _service(client, sleep_recorder).generate(
            "X", UnitKind.PROGRAM_UNIT, "NULL;", CONTEXT, on_progress=events.append,
        )

        assert not result.success
        assert result.artifact == ""
        assert result.error.kind == GenerationErrorKind.INVALID_CREDENTIAL
        assert result.error.message == "No API key provided"
        assert client.call_count == 1
        assert sleep_recorder.delays == []
        assert events[-1].status == GenerationStatus.ERROR

    async def test_credential_forwarded(self, sleep_recorder):
        client = FakeGenerationClient([ok("NULL;")])

        await _service(client, sleep_recorder).generate(
            "X", UnitKind.PROGRAM_UNIT, "NULL;", CONTEXT, credential="sk-request",
        )

        assert client.credentials == ["sk-request"]


class TestChunkedStrategy:
    """Larger units are chunked, generated in order and reassembled."""

    async def test_large_unit(self, sleep_recorder):
        client = FakeGenerationClient(default=_chunk_reply)
        config = GenerationConfig()
        expected_chunks = SemanticChunker(config).chunk(LARGE_SOURCE)
        events = []

        result = await _service(client, sleep_recorder, config).generate(
            "PROCESS_EMP", UnitKind.PROGRAM_UNIT, LARGE_SOURCE, CONTEXT, on_progress=events.append,
        )

        total = len(expected_chunks)
        assert result.success
        assert result.strategy == GenerationStrategy.MULTI_PHASE
        assert [c.type for c in expected_chunks] == [
            ChunkType.DECLARATIONS,
            ChunkType.BUSINESS_LOGIC,
            ChunkType.BUSINESS_LOGIC,
            ChunkType.BUSINESS_LOGIC,
            ChunkType.BUSINESS_LOGIC,
            ChunkType.VALIDATION,
            ChunkType.DML,
            ChunkType.EXCEPTION_HANDLING,
        ]
        assert client.call_count == total
        assert [f"Chunk: {i} of {total}" in p for i, p in enumerate(client.prompts, start=1)] == [True] * total

        assert [r.order for r in result.per_chunk_results] == list(range(total))
        assert result.per_chunk_results[0].original_code == expected_chunks[0].code

        artifact = result.artifact
        assert "PROCEDURE process_emp_apex IS" in artifact
        assert artifact.index("-- generated 1") < artifact.index("BEGIN")
        assert artifact.index("BEGIN") < artifact.index("  -- Validations")
        assert artifact.index("  -- Validations") < artifact.index("  -- generated 6")
        assert artifact.index("  -- generated 6") < artifact.index("  -- Business Logic")
        assert artifact.index("  -- Business Logic") < artifact.index("  -- generated 2")
        assert artifact.index("  -- generated 5") < artifact.index("  -- Data Operations")
        assert artifact.index("EXCEPTION") < artifact.index("  -- generated 8")
        assert artifact.endswith("END process_emp_apex;")

        assert result.explanation.startswith("### Chunk 1: declarations\n## What This Code Does")
        assert result.explanation.count("\n\n---\n\n") == total - 1

        assert _statuses(events) == [
            GenerationStatus.ANALYZING,
            GenerationStatus.GENERATING,
            GenerationStatus.ASSEMBLING,
            GenerationStatus.COMPLETE,
        ]
        assert events[1].message == f"Large code block - generating in {total} chunks..."
        assert events[2].message == "Generating chunk 1/8 (declarations)..."
        assert events[3].message == "Chunk 1: Attempt 1/3..."
        assert events[-2].message == "Assembling generated chunks..."
        units = [e.current_unit for e in events]
        assert units == sorted(units)

    async def test_chunk_failure_keeps_partial(self, sleep_recorder):
        """Chunk 2 of 4 rate-limited on every attempt: partial holds chunk 1 only."""
        client = FakeGenerationClient(
            [_chunk_reply],
            default=failed(GenerationErrorKind.RATE_LIMITED, "Rate limit exceeded. Please wait a moment and try again."),
        )
        events = []

        result = await _service(client, sleep_recorder).generate(
            "PROCESS_EMP", UnitKind.PROGRAM_UNIT, MEDIUM_SOURCE, CONTEXT, on_progress=events.append,
        )

        assert not result.success
        assert result.strategy == GenerationStrategy.CHUNKED
        assert result.artifact == ""
        assert result.error.kind == GenerationErrorKind.RATE_LIMITED
        assert result.error.failed_unit == 2
        assert result.error.total_units == 4
        assert result.error.message.startswith("Failed at chunk 2/4: Failed after 3 attempts: Rate limit exceeded")
        assert client.call_count == 4
        assert sleep_recorder.delays == [2.0, 4.0]

        assert len(result.per_chunk_results) == 1
        assert "  -- generated 1" in result.partial_artifact
        assert "-- generated 2" not in result.partial_artifact

        last = events[-1]
        assert last.status == GenerationStatus.ERROR
        assert last.current_unit == 2
        assert last.partial_artifact == result.partial_artifact
        assert "Chunk 2: Rate limited. Waiting 2s before retry..." in [e.message for e in events]

    async def test_first_chunk_failure_has_no_partial(self, sleep_recorder):
        client = FakeGenerationClient(default=failed(GenerationErrorKind.PAYLOAD_TOO_LARGE, "too big"))

        result = await _service(client, sleep_recorder).generate(
            "X", UnitKind.PROGRAM_UNIT, MEDIUM_SOURCE, CONTEXT,
        )

        assert not result.success
        assert result.partial_artifact is None
        assert result.per_chunk_results is None
        assert result.error.message == "Failed at chunk 1/4: too big"
        assert client.call_count == 1


class TestFailureContainment:
    """Nothing escapes generate()."""

    async def test_invalid_input(self, sleep_recorder):
        client = FakeGenerationClient()
        events = []

        result = await _service(client, sleep_recorder).generate(
            "", UnitKind.PROGRAM_UNIT, "NULL;", CONTEXT, on_progress=events.append,
        )

        assert not result.success
        assert result.error.kind == GenerationErrorKind.INVALID_INPUT
        assert client.call_count == 0
        assert events == []

    async def test_prompt_builder_exception(self, sleep_recorder):
        class BrokenPromptBuilder(PromptBuilder):
            def build_single(self, *args, **kwargs):
                raise RuntimeError("template missing")

        client = FakeGenerationClient()
        events = []

        result = await _service(
            client, sleep_recorder, prompt_builder=BrokenPromptBuilder()
        ).generate("X", UnitKind.PROGRAM_UNIT, "NULL;", CONTEXT, on_progress=events.append)

        assert not result.success
        assert result.error.kind == GenerationErrorKind.UNKNOWN
        assert "template missing" in result.error.message
        assert events[-1].status == GenerationStatus.ERROR

    async def test_progress_callback_exception_ignored(self, sleep_recorder):
        def explode(event):
            raise ValueError("ui closed")

        client = FakeGenerationClient([ok("NULL;")])

        result = await _service(client, sleep_recorder).generate(
            "X", UnitKind.PROGRAM_UNIT, "NULL;", CONTEXT, on_progress=explode,
        )

        assert result.success

    async def test_opaque_context(self, sleep_recorder):
        """Any context object is passed through to the prompt."""
        client = FakeGenerationClient([ok("NULL;")])

        await _service(client, sleep_recorder).generate(
            "X", UnitKind.PROGRAM_UNIT, "NULL;", "legacy payroll screen",
        )

        assert "legacy payroll screen" in client.prompts[0]

    async def test_concurrent_runs_are_independent(self, sleep_recorder):
        client = FakeGenerationClient(default=ok("NULL;"))
        service = _service(client, sleep_recorder)

        first, second = await asyncio.gather(
            service.generate("FIRST", UnitKind.PROGRAM_UNIT, "NULL;", CONTEXT),
            service.generate("SECOND", UnitKind.PROGRAM_UNIT, "NULL;", CONTEXT),
        )

        assert first.unit_name == "FIRST"
        assert second.unit_name == "SECOND"
        assert "FIRST" in first.artifact
        assert "SECOND" in second.artifact
