"""
Generation Retry Repository.

Wraps a single-call generation client with sequential attempts and
exponential backoff. Used unchanged for whole-unit and per-chunk calls.

Policy:
- Attempts run 1..max_attempts, one at a time
- Success returns immediately
- Invalid credential / payload too large return immediately
- Anything else waits backoff_base ** attempt seconds, then retries
- Exhaustion returns "Failed after N attempts: <last error>"
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from forms2apex.config import GenerationConfig
from forms2apex.domain.base_enums import GenerationErrorKind
from forms2apex.domain.generation import LLMCallResult
from forms2apex.domain.ports import IGenerationClient
from forms2apex.utils.logging import get_module_logger
from forms2apex.utils.tracing import current_trace_id

logger = get_module_logger()

SleepFunc = Callable[[float], Awaitable[Any]]
MessageCallback = Callable[[str], Any]


class RetryingGenerator:
    """
    Repository adding retry/backoff around IGenerationClient.call_once.

    The sleep function is injectable so tests can record delays instead
    of waiting.
    """

    def __init__(
        self,
        client: IGenerationClient,
        config: GenerationConfig,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.client = client
        self.config = config
        self._sleep = sleep

    def backoff_seconds(self, attempt: int) -> float:
        """Delay after failed attempt number `attempt` (1-based)."""
        return self.config.backoff_base_seconds ** attempt

    async def call_with_retry(
        self,
        prompt: str,
        system_prompt: str,
        credential: Optional[str] = None,
        max_attempts: Optional[int] = None,
        on_progress: Optional[MessageCallback] = None,
    ) -> LLMCallResult:
        """
        Call the client until it succeeds, fails permanently, or attempts run out.

        Args:
            prompt: User prompt
            system_prompt: System instruction
            credential: API key for the calls
            max_attempts: Attempt cap; config.max_attempts if None
            on_progress: Receives a short message before each attempt and backoff

        Returns:
            LLMCallResult with `attempts` set to the number of calls made

        Raises:
            ValueError: If max_attempts is less than 1
        """
        trace_id = current_trace_id()
        attempts = self.config.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {attempts}")

        attempt = 0
        while True:
            attempt += 1
            if on_progress:
                on_progress(f"Attempt {attempt}/{attempts}...")

            result = await self.client.call_once(prompt, system_prompt, credential)

            if result.success:
                if attempt > 1:
                    logger.info("LLM call succeeded after retry", attempt=attempt, trace_id=trace_id)
                return result.model_copy(update={"attempts": attempt})

            if not result.retryable:
                logger.warning(
                    "LLM call failed with non-retryable error",
                    attempt=attempt,
                    error_kind=result.error_kind.value if result.error_kind else None,
                    error=result.error,
                    trace_id=trace_id,
                )
                return result.model_copy(update={"attempts": attempt})

            logger.warning(
                f"LLM call attempt {attempt}/{attempts} failed",
                error_kind=result.error_kind.value if result.error_kind else None,
                error=result.error,
                trace_id=trace_id,
            )

            if attempt >= attempts:
                return LLMCallResult(
                    success=False,
                    error=f"Failed after {attempts} attempts: {result.error or 'Unknown error'}",
                    error_kind=result.error_kind or GenerationErrorKind.UNKNOWN,
                    attempts=attempts,
                )

            delay = self.backoff_seconds(attempt)
            if on_progress:
                on_progress(f"{self._describe(result)}. Waiting {delay:g}s before retry...")
            await self._sleep(delay)

    @staticmethod
    def _describe(result: LLMCallResult) -> str:
        if result.error_kind == GenerationErrorKind.RATE_LIMITED:
            return "Rate limited"
        return "Request failed"
