"""
Semantic Chunking Repository.

Splits a source block into ordered, typed chunks using line-level keyword
heuristics. No grammar is parsed: every line is classified on its own,
with only the current chunk type carried between lines.

Classification, first match wins (case-insensitive, trimmed line):
1. DECLARE opens a declarations chunk; lines stay in it until BEGIN,
   which opens business-logic.
2. EXCEPTION opens an exception-handling chunk.
3. DML markers open/extend a dml chunk.
4. Validation markers open/extend a validation chunk.
5. Anything else extends the current chunk (business-logic if none).

Chunks are force-flushed at chunk_target_lines * chunk_flush_factor lines.
"""

import re
from typing import List, Optional

from forms2apex.config import GenerationConfig
from forms2apex.domain.base_enums import ChunkType
from forms2apex.domain.generation import Chunk
from forms2apex.utils.logging import get_module_logger
from forms2apex.utils.token_utils import split_lines

logger = get_module_logger()


_DECLARE_RE = re.compile(r"^DECLARE\b")
_BEGIN_RE = re.compile(r"^BEGIN\b")
_EXCEPTION_RE = re.compile(r"^EXCEPTION\b")

# UPDATE counts as DML only with SET on the same line; multi-line UPDATEs are not merged
_UPDATE_SET_RE = re.compile(r"\bUPDATE\b.*\bSET\b")
_DML_MARKERS = ("INSERT INTO", "DELETE FROM", "COMMIT", "ROLLBACK")

_VALIDATION_MARKERS = ("RAISE_APPLICATION_ERROR", "FND_MESSAGE")
_CONDITIONAL_RE = re.compile(r"\b(?:IF|ELSIF)\b")
_VALIDITY_CHECKS = ("IS NULL", "NOT VALID", "CHECK_")


def is_dml_line(upper_line: str) -> bool:
    """True if an upper-cased line carries a DML or transaction marker."""
    if any(marker in upper_line for marker in _DML_MARKERS):
        return True
    return _UPDATE_SET_RE.search(upper_line) is not None


def is_validation_line(upper_line: str) -> bool:
    """True if an upper-cased line raises an error, sends a message, or tests validity."""
    if any(marker in upper_line for marker in _VALIDATION_MARKERS):
        return True
    return (
        _CONDITIONAL_RE.search(upper_line) is not None
        and any(check in upper_line for check in _VALIDITY_CHECKS)
    )


class _ChunkAccumulator:
    """Current chunk type, buffered lines and start line, plus emitted chunks."""

    def __init__(self, flush_at: int):
        self.flush_at = flush_at
        self.current_type: Optional[ChunkType] = None
        self.lines: List[str] = []
        self.start_line = 1
        self.chunks: List[Chunk] = []

    def start(self, chunk_type: ChunkType) -> None:
        """Close the open chunk and switch to a new type."""
        self.flush()
        self.current_type = chunk_type

    def add(self, line: str, line_number: int) -> None:
        if not self.lines:
            self.start_line = line_number
            if self.current_type is None:
                self.current_type = ChunkType.BUSINESS_LOGIC
        self.lines.append(line)

        # The type stays open after a forced flush; the next line continues it
        if len(self.lines) >= self.flush_at:
            self.flush()

    def flush(self) -> None:
        if not self.lines:
            return
        self.chunks.append(Chunk(
            code="\n".join(self.lines),
            type=self.current_type or ChunkType.BUSINESS_LOGIC,
            start_line=self.start_line,
            end_line=self.start_line + len(self.lines) - 1,
            order=len(self.chunks),
        ))
        self.lines = []


class SemanticChunker:
    """
    Repository for splitting source blocks into typed chunks.

    Pure and total: any string yields at least one chunk, and joining the
    chunk codes with newlines in ascending order rebuilds the input.
    """

    def __init__(self, config: GenerationConfig):
        self.config = config

    def chunk(self, source_text: str) -> List[Chunk]:
        """
        Split source text into ordered chunks.

        Args:
            source_text: Raw unit source

        Returns:
            Chunks with strictly increasing order starting at 0
        """
        lines = split_lines(source_text)

        if not source_text.strip():
            return [Chunk(
                code=source_text,
                type=ChunkType.FULL,
                start_line=1,
                end_line=len(lines),
                order=0,
            )]

        acc = _ChunkAccumulator(flush_at=self.config.chunk_flush_lines)

        for line_number, line in enumerate(lines, start=1):
            upper_line = line.strip().upper()

            if _DECLARE_RE.match(upper_line):
                acc.start(ChunkType.DECLARATIONS)
            elif acc.current_type == ChunkType.DECLARATIONS:
                if _BEGIN_RE.match(upper_line):
                    acc.start(ChunkType.BUSINESS_LOGIC)
            elif _EXCEPTION_RE.match(upper_line):
                acc.start(ChunkType.EXCEPTION_HANDLING)
            elif is_dml_line(upper_line):
                if acc.current_type != ChunkType.DML:
                    acc.start(ChunkType.DML)
            elif is_validation_line(upper_line):
                if acc.current_type != ChunkType.VALIDATION:
                    acc.start(ChunkType.VALIDATION)

            acc.add(line, line_number)

        acc.flush()

        logger.debug(
            "Source chunked",
            line_count=len(lines),
            chunk_count=len(acc.chunks),
            chunk_types=[c.type.value for c in acc.chunks],
        )

        return acc.chunks
