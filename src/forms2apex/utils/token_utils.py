"""
Size utilities for source blocks and LLM requests.

Token counts here are rough character-based approximations. They are
advisory only and never used to reject a request; hard rejection uses
the character limits enforced by InputValidator.
"""

import math
from typing import List, Optional

from forms2apex.config_constants import CHARS_PER_TOKEN


def split_lines(text: str) -> List[str]:
    """
    Split text on newline characters only.

    Unlike str.splitlines(), the result always rejoins to the original
    text with "\\n".join(), and an empty string yields one empty line.
    """
    return text.split("\n")


def count_lines(text: str) -> int:
    """Number of lines in text as produced by split_lines()."""
    return len(split_lines(text))


def estimate_tokens(text: str, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """
    Estimate the token count of text.

    Example:
        >>> estimate_tokens("abcdefghi")
        3
    """
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token)


class InputValidator:
    """
    Input validation utility for checking LLM request size.

    Uses simple character count checks against hard limits.
    """

    @staticmethod
    def validate_total_chars(
        prompt: str,
        system_prompt: Optional[str] = None,
        max_chars: int = 0
    ) -> None:
        """
        Validate total character count for an LLM request.

        Args:
            prompt: User prompt text
            system_prompt: Optional system prompt
            max_chars: Maximum allowed total characters

        Raises:
            ValueError: If total exceeds character limit
        """
        total_chars = len(prompt)
        if system_prompt:
            total_chars += len(system_prompt)

        if total_chars > max_chars:
            raise ValueError(
                f"Total input too large: {total_chars} characters, "
                f"maximum allowed: {max_chars}"
            )
