"""Unit tests for size analysis and strategy selection."""

import pytest

from forms2apex.config import GenerationConfig
from forms2apex.domain.base_enums import GenerationStrategy
from forms2apex.repositories.semantic_chunking import SemanticChunker
from forms2apex.repositories.size_analysis import SizeAnalyzer


def _lines(n: int) -> str:
    return "\n".join(["NULL;"] * n)


@pytest.fixture
def analyzer():
    config = GenerationConfig()
    return SizeAnalyzer(config, SemanticChunker(config))


class TestStrategySelection:
    """Tests for the inclusive strategy thresholds."""

    @pytest.mark.parametrize("line_count,expected", [
        (1, GenerationStrategy.SINGLE),
        (150, GenerationStrategy.SINGLE),
        (151, GenerationStrategy.CHUNKED),
        (400, GenerationStrategy.CHUNKED),
        (401, GenerationStrategy.MULTI_PHASE),
    ])
    def test_boundaries(self, analyzer, line_count, expected):
        analysis = analyzer.analyze(_lines(line_count))

        assert analysis.line_count == line_count
        assert analysis.strategy == expected

    def test_single_has_no_chunks(self, analyzer):
        analysis = analyzer.analyze(_lines(150))

        assert analysis.chunks is None

    def test_chunked_carries_chunks(self, analyzer):
        analysis = analyzer.analyze(_lines(151))

        assert analysis.chunks
        assert sum(c.line_count for c in analysis.chunks) == 151

    def test_empty_source_is_single(self, analyzer):
        analysis = analyzer.analyze("")

        assert analysis.line_count == 1
        assert analysis.estimated_token_count == 0
        assert analysis.strategy == GenerationStrategy.SINGLE

    def test_custom_thresholds(self):
        config = GenerationConfig(small_threshold_lines=5, medium_threshold_lines=10)
        analyzer = SizeAnalyzer(config, SemanticChunker(config))

        assert analyzer.select_strategy(5) == GenerationStrategy.SINGLE
        assert analyzer.select_strategy(6) == GenerationStrategy.CHUNKED
        assert analyzer.select_strategy(11) == GenerationStrategy.MULTI_PHASE


class TestAnalysisDetails:
    """Tests for token estimate and description."""

    def test_token_estimate(self, analyzer):
        analysis = analyzer.analyze("a" * 9)

        assert analysis.estimated_token_count == 3

    def test_describe_single(self, analyzer):
        analysis = analyzer.analyze(_lines(50))

        assert analysis.describe() == "Small code block (50 lines) - single request"

    def test_describe_chunked(self, analyzer):
        analysis = analyzer.analyze(_lines(200))

        assert analysis.describe() == "Medium code block (200 lines) - will be split into 2 chunks"

    def test_describe_multi_phase(self, analyzer):
        analysis = analyzer.analyze(_lines(500))

        assert analysis.describe().startswith("Large code block (500 lines) - multi-phase")
