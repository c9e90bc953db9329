"""
Size Analysis Repository.

Classifies a source block by line count into a generation strategy and,
for anything above the single-request threshold, attaches its chunks.
"""

from forms2apex.config import GenerationConfig
from forms2apex.domain.base_enums import GenerationStrategy
from forms2apex.domain.generation import SizeAnalysis
from forms2apex.repositories.semantic_chunking import SemanticChunker
from forms2apex.utils.logging import get_module_logger
from forms2apex.utils.token_utils import count_lines, estimate_tokens

logger = get_module_logger()


class SizeAnalyzer:
    """
    Repository for size analysis and strategy selection.

    Thresholds are inclusive upper bounds: with the defaults a block of
    exactly 150 lines is single, 151-400 lines is chunked, and anything
    longer is multi-phase.
    """

    def __init__(self, config: GenerationConfig, chunker: SemanticChunker):
        self.config = config
        self.chunker = chunker

    def select_strategy(self, line_count: int) -> GenerationStrategy:
        """Pick a strategy from a line count."""
        if line_count <= self.config.small_threshold_lines:
            return GenerationStrategy.SINGLE
        if line_count <= self.config.medium_threshold_lines:
            return GenerationStrategy.CHUNKED
        return GenerationStrategy.MULTI_PHASE

    def analyze(self, source_text: str) -> SizeAnalysis:
        """
        Analyze a source block.

        Args:
            source_text: Raw unit source

        Returns:
            SizeAnalysis with strategy and, unless single, the chunk list
        """
        line_count = count_lines(source_text)
        strategy = self.select_strategy(line_count)

        chunks = None
        if strategy != GenerationStrategy.SINGLE:
            chunks = self.chunker.chunk(source_text)

        analysis = SizeAnalysis(
            line_count=line_count,
            estimated_token_count=estimate_tokens(source_text, self.config.chars_per_token),
            strategy=strategy,
            chunks=chunks,
        )

        logger.debug(
            "Source size analyzed",
            line_count=line_count,
            estimated_tokens=analysis.estimated_token_count,
            strategy=strategy.value,
            chunk_count=len(chunks) if chunks else 0,
        )

        return analysis
