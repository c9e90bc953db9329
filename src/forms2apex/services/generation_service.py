"""
Generation Service - Orchestrator for legacy-to-APEX code generation.

This service is a THIN ORCHESTRATOR that coordinates repositories:
1. SizeAnalyzer - Strategy selection (+ SemanticChunker)
2. PromptBuilder - Prompt construction
3. RetryingGenerator - Remote calls with retry/backoff
4. ResponseParser - Code/explanation extraction
5. ChunkAssembler - Reassembly of chunked output

State machine per run:
    idle -> analyzing -> generating -> [assembling] -> complete
                 |            |
                 +------------+--> error

Key principles:
- Chunks are generated strictly one after another, in source order
- Every transition is pushed to the progress callback, nothing is stored
- No exception escapes generate(); failures become GenerationResult.error
- Completed chunk output survives a later failure as a partial artifact
"""

import time
from typing import Any, Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from forms2apex.config import GenerationConfig
from forms2apex.domain.base_enums import (
    GenerationErrorKind,
    GenerationStatus,
    GenerationStrategy,
    UnitKind,
)
from forms2apex.domain.generation import (
    Chunk,
    ErrorDescriptor,
    GeneratedChunk,
    GenerationProgress,
    GenerationResult,
    ProgressCallback,
    SizeAnalysis,
    SourceBlock,
)
from forms2apex.domain.pipeline import GenerationState
from forms2apex.domain.ports import IPromptBuilder
from forms2apex.repositories.chunk_assembly import ChunkAssembler
from forms2apex.repositories.generation_retry import RetryingGenerator
from forms2apex.repositories.response_parsing import ResponseParser
from forms2apex.repositories.size_analysis import SizeAnalyzer
from forms2apex.utils.logging import get_module_logger
from forms2apex.utils.tracing import get_trace_id

logger = get_module_logger()

CHUNK_EXPLANATION_SEPARATOR = "\n\n---\n\n"


class GenerationService:
    """
    Main orchestrator for the generation pipeline.

    Holds only collaborators and configuration; all per-run data lives in
    a GenerationState created inside generate(), so independent runs can
    be awaited concurrently.
    """

    def __init__(
        self,
        size_analyzer: SizeAnalyzer,
        prompt_builder: IPromptBuilder,
        retrying_generator: RetryingGenerator,
        response_parser: ResponseParser,
        chunk_assembler: ChunkAssembler,
        config: GenerationConfig,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.size_analyzer = size_analyzer
        self.prompt_builder = prompt_builder
        self.generator = retrying_generator
        self.parser = response_parser
        self.assembler = chunk_assembler
        self.config = config
        self._clock = clock

        logger.info(
            "GenerationService initialized",
            small_threshold_lines=config.small_threshold_lines,
            medium_threshold_lines=config.medium_threshold_lines,
            max_attempts=config.max_attempts,
        )

    async def generate(
        self,
        unit_name: str,
        unit_kind: UnitKind,
        source_text: str,
        knowledge_context: Any,
        on_progress: Optional[ProgressCallback] = None,
        credential: Optional[str] = None,
        block_name: Optional[str] = None,
        item_name: Optional[str] = None,
    ) -> GenerationResult:
        """
        Generate target code for one unit.

        Args:
            unit_name: Declared name of the trigger / program unit
            unit_kind: Selects the prompt flavour only
            source_text: Raw legacy source
            knowledge_context: Passed to the prompt builder untouched
            on_progress: Called synchronously with every GenerationProgress
            credential: API key for the remote calls (client default if None)
            block_name: Owning block, for trigger prompts
            item_name: Owning item, for trigger prompts

        Returns:
            GenerationResult; never raises
        """
        started_at = self._clock()

        try:
            block = SourceBlock(
                name=unit_name,
                kind=unit_kind,
                source_text=source_text,
                block_name=block_name,
                item_name=item_name,
            )
        except PydanticValidationError as e:
            logger.warning("Rejected generation request", error_count=e.error_count())
            return GenerationResult(
                success=False,
                unit_name=unit_name,
                error=ErrorDescriptor(
                    kind=GenerationErrorKind.INVALID_INPUT,
                    message=f"Invalid generation request: {e}",
                ),
                elapsed_time=self._clock() - started_at,
            )

        return await self.generate_block(block, knowledge_context, on_progress, credential)

    async def generate_block(
        self,
        block: SourceBlock,
        knowledge_context: Any,
        on_progress: Optional[ProgressCallback] = None,
        credential: Optional[str] = None,
    ) -> GenerationResult:
        """Generate target code for an already-built SourceBlock."""
        trace_id = get_trace_id()
        state = GenerationState(
            block=block,
            context=knowledge_context,
            credential=credential,
            started_at=self._clock(),
        )

        logger.info(
            "Starting generation",
            unit_name=block.name,
            unit_kind=block.kind.value,
            source_length=len(block.source_text),
            trace_id=trace_id,
        )

        try:
            analysis = self._step_analyze(state, on_progress)

            if analysis.strategy == GenerationStrategy.SINGLE:
                await self._step_generate_single(state, analysis, on_progress)
            else:
                await self._step_generate_chunks(state, analysis.chunks or [], on_progress)
                if state.error is None:
                    self._step_assemble(state, on_progress)

        except Exception as e:
            logger.error(
                "Generation pipeline failed",
                error=str(e),
                error_type=type(e).__name__,
                status=state.status.value,
                trace_id=trace_id,
                exc_info=True,
            )
            state.error = ErrorDescriptor(
                kind=GenerationErrorKind.UNKNOWN,
                message=f"Generation failed: {e}",
            )
            self._transition(
                state,
                on_progress,
                GenerationStatus.ERROR,
                message=state.error.message,
                partial_artifact=self._partial_artifact(state),
            )

        return self._build_result(state)

    # =========================================================================
    # Pipeline Steps (thin - delegate to repositories)
    # =========================================================================

    def _step_analyze(
        self, state: GenerationState, on_progress: Optional[ProgressCallback]
    ) -> SizeAnalysis:
        """idle -> analyzing: classify size and chunk if needed."""
        self._transition(
            state, on_progress, GenerationStatus.ANALYZING,
            message="Analyzing code structure...",
        )

        analysis = self.size_analyzer.analyze(state.block.source_text)
        state.analysis = analysis

        logger.info(
            "Strategy selected",
            strategy=analysis.strategy.value,
            line_count=analysis.line_count,
            estimated_tokens=analysis.estimated_token_count,
            chunk_count=len(analysis.chunks or []),
            trace_id=get_trace_id(),
        )
        return analysis

    async def _step_generate_single(
        self,
        state: GenerationState,
        analysis: SizeAnalysis,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        """analyzing -> generating -> complete with one remote call."""
        block = state.block

        self._transition(
            state, on_progress, GenerationStatus.GENERATING, 1, 1,
            message=f"Generating APEX code with explanation ({analysis.line_count} lines)...",
        )

        prompt = self.prompt_builder.build_single(
            block.name,
            block.kind,
            block.source_text,
            state.context,
            block_name=block.block_name,
            item_name=block.item_name,
        )

        result = await self.generator.call_with_retry(
            prompt,
            self.prompt_builder.system_prompt,
            credential=state.credential,
            max_attempts=self.config.max_attempts,
            on_progress=lambda msg: self._transition(
                state, on_progress, GenerationStatus.GENERATING, 1, 1, message=msg
            ),
        )

        if not result.success:
            state.error = ErrorDescriptor(
                kind=result.error_kind or GenerationErrorKind.UNKNOWN,
                message=result.error or "Unknown error",
                failed_unit=1,
                total_units=1,
            )
            self._transition(
                state, on_progress, GenerationStatus.ERROR, 1, 1, message=state.error.message
            )
            return

        parsed = self.parser.parse(result.raw_text)
        state.artifact = self.assembler.wrap_with_draft_banner(parsed.code, block.name)
        state.explanation = parsed.explanation.to_markdown() if parsed.explanation else None

        self._transition(
            state, on_progress, GenerationStatus.COMPLETE, 1, 1, message="Generation complete!"
        )

    async def _step_generate_chunks(
        self,
        state: GenerationState,
        chunks: List[Chunk],
        on_progress: Optional[ProgressCallback],
    ) -> None:
        """analyzing -> generating: one remote call per chunk, in order."""
        total = len(chunks)
        trace_id = get_trace_id()

        self._transition(
            state, on_progress, GenerationStatus.GENERATING, 0, total,
            message=f"Large code block - generating in {total} chunks...",
        )

        for index, chunk in enumerate(chunks, start=1):
            self._transition(
                state, on_progress, GenerationStatus.GENERATING, index, total,
                message=f"Generating chunk {index}/{total} ({chunk.type.value})...",
            )

            prompt = self.prompt_builder.build_chunk(
                chunk.code, chunk.type, state.block.name, state.context, index, total
            )

            result = await self.generator.call_with_retry(
                prompt,
                self.prompt_builder.system_prompt,
                credential=state.credential,
                max_attempts=self.config.max_attempts,
                on_progress=lambda msg, i=index: self._transition(
                    state, on_progress, GenerationStatus.GENERATING, i, total,
                    message=f"Chunk {i}: {msg}",
                ),
            )

            if not result.success:
                state.error = ErrorDescriptor(
                    kind=result.error_kind or GenerationErrorKind.UNKNOWN,
                    message=f"Failed at chunk {index}/{total}: {result.error}",
                    failed_unit=index,
                    total_units=total,
                )
                logger.warning(
                    "Chunk generation failed",
                    chunk=index,
                    total_chunks=total,
                    completed_chunks=len(state.chunk_results),
                    error=result.error,
                    trace_id=trace_id,
                )
                self._transition(
                    state, on_progress, GenerationStatus.ERROR, index, total,
                    message=state.error.message,
                    partial_artifact=self._partial_artifact(state),
                )
                return

            parsed = self.parser.parse(result.raw_text)
            state.chunk_results.append(GeneratedChunk(
                original_code=chunk.code,
                generated_code=parsed.code,
                chunk_type=chunk.type,
                order=chunk.order,
            ))
            if parsed.explanation:
                state.explanations.append(
                    f"### Chunk {index}: {chunk.type.value}\n{parsed.explanation.to_markdown()}"
                )

            logger.info(
                "Chunk generated",
                chunk=index,
                total_chunks=total,
                chunk_type=chunk.type.value,
                attempts=result.attempts,
                trace_id=trace_id,
            )

    def _step_assemble(self, state: GenerationState, on_progress: Optional[ProgressCallback]) -> None:
        """generating -> assembling -> complete."""
        total = len(state.chunk_results)

        self._transition(
            state, on_progress, GenerationStatus.ASSEMBLING, total, total,
            message="Assembling generated chunks...",
        )

        state.artifact = self.assembler.assemble(state.chunk_results, state.block.name)
        if state.explanations:
            state.explanation = CHUNK_EXPLANATION_SEPARATOR.join(state.explanations)

        self._transition(
            state, on_progress, GenerationStatus.COMPLETE, total, total,
            message="Generation complete!",
        )

    # =========================================================================
    # Progress & Result Building
    # =========================================================================

    def _transition(
        self,
        state: GenerationState,
        on_progress: Optional[ProgressCallback],
        status: GenerationStatus,
        current_unit: int = 0,
        total_units: int = 0,
        message: str = "",
        partial_artifact: Optional[str] = None,
    ) -> None:
        """Move the run to `status` and push the event to the callback."""
        state.status = status
        if on_progress is None:
            return

        event = GenerationProgress(
            status=status,
            current_unit=current_unit,
            total_units=total_units,
            message=message,
            partial_artifact=partial_artifact,
        )
        try:
            on_progress(event)
        except Exception as e:
            # A failing observer must not change the outcome of the run
            logger.warning(
                "Progress callback raised",
                status=status.value,
                error=str(e),
                error_type=type(e).__name__,
            )

    def _partial_artifact(self, state: GenerationState) -> Optional[str]:
        """Assembly of the chunks completed so far, or None if there are none."""
        if not state.chunk_results:
            return None
        return self.assembler.assemble(state.chunk_results, state.block.name)

    def _build_result(self, state: GenerationState) -> GenerationResult:
        """Build the final GenerationResult from run state."""
        elapsed = self._clock() - state.started_at
        strategy = state.analysis.strategy if state.analysis else None
        per_chunk = list(state.chunk_results) if state.chunk_results else None

        if state.error is not None:
            logger.warning(
                "Generation finished with error",
                unit_name=state.block.name,
                error_kind=state.error.kind.value,
                error=state.error.message,
                elapsed_seconds=round(elapsed, 3),
                trace_id=get_trace_id(),
            )
            return GenerationResult(
                success=False,
                unit_name=state.block.name,
                strategy=strategy,
                per_chunk_results=per_chunk,
                partial_artifact=self._partial_artifact(state),
                error=state.error,
                elapsed_time=elapsed,
            )

        logger.info(
            "Generation complete",
            unit_name=state.block.name,
            strategy=strategy.value if strategy else None,
            artifact_length=len(state.artifact or ""),
            elapsed_seconds=round(elapsed, 3),
            trace_id=get_trace_id(),
        )
        return GenerationResult(
            success=True,
            unit_name=state.block.name,
            strategy=strategy,
            artifact=state.artifact or "",
            explanation=state.explanation,
            per_chunk_results=per_chunk,
            elapsed_time=elapsed,
        )
