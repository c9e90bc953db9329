"""
Response Parsing Repository.

Extracts generated code and an optional structured explanation from a
free-text model response.

Handles:
- JSON object {"explanation": {...}, "code": "..."}, bare or inside a fence
- Fenced code block (```plsql ... ```): first block's contents
- Anything else: the raw response verbatim

Parsing never raises; the worst case is code == raw response.
"""

import json
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from forms2apex.domain.explanation import CodeExplanation, ParsedResponse
from forms2apex.utils.logging import get_module_logger

logger = get_module_logger()


_FENCE_RE = re.compile(r"```[ \t]*[A-Za-z0-9_+.-]*[ \t]*\n?(.*?)```", re.DOTALL)


class ResponseParser:
    """Repository turning raw model text into code plus explanation."""

    def parse(self, raw_text: str) -> ParsedResponse:
        """
        Parse a raw model response.

        Args:
            raw_text: Response text as returned by the provider

        Returns:
            ParsedResponse; explanation is None when absent or malformed
        """
        payload = self._extract_json_object(raw_text)
        if payload is not None:
            code = payload["code"]
            fenced = self._first_fenced_block(code)
            return ParsedResponse(
                code=fenced if fenced is not None else code.strip(),
                explanation=self._parse_explanation(payload.get("explanation")),
            )

        fenced = self._first_fenced_block(raw_text)
        if fenced is not None:
            return ParsedResponse(code=fenced)

        logger.debug(
            "Response has no JSON payload or fenced block, using raw text",
            response_length=len(raw_text),
        )
        return ParsedResponse(code=raw_text)

    @staticmethod
    def _first_fenced_block(text: str) -> Optional[str]:
        """Contents of the first fenced block, stripped, or None."""
        match = _FENCE_RE.search(text)
        if match:
            return match.group(1).strip()
        return None

    @staticmethod
    def _extract_json_object(text: str) -> Optional[Dict[str, Any]]:
        """
        Find a JSON object carrying a non-blank string "code" field.

        Tries the outermost braces of the text; model output often wraps
        the object in a ```json fence or adds chatter around it.
        """
        start = text.find('{')
        end = text.rfind('}')

        if start == -1 or end == -1 or end <= start:
            return None

        try:
            data = json.loads(text[start:end + 1])
        except (ValueError, RecursionError):
            return None

        if not isinstance(data, dict):
            return None
        code = data.get("code")
        if not isinstance(code, str) or not code.strip():
            return None
        return data

    @staticmethod
    def _parse_explanation(raw: Any) -> Optional[CodeExplanation]:
        """Validate the explanation section; malformed sections are dropped."""
        if not isinstance(raw, dict):
            return None
        try:
            return CodeExplanation.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(
                "Discarding malformed explanation section",
                error_count=e.error_count(),
            )
            return None
