"""
LLM client for OpenRouter using LangChain.

This module provides an async LLM client that uses LangChain's ChatOpenAI
with OpenRouter API for code conversion requests. Remote failures are
classified and returned as LLMCallResult values, never raised, so the
retry layer above can decide what to do with them.
"""

from typing import List, Optional, Tuple

import openai
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from ..config import LLMConfig
from ..domain.base_enums import GenerationErrorKind
from ..domain.errors import LLMError
from ..domain.generation import LLMCallResult
from ..utils.logging import get_module_logger
from ..utils.token_utils import InputValidator
from ..utils.tracing import current_trace_id


logger = get_module_logger()

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait a moment and try again."
PAYLOAD_TOO_LARGE_MESSAGE = "Code too large for single request. Chunking required."
MISSING_CREDENTIAL_MESSAGE = "No API key provided"

_SIZE_HINTS = ("token", "context length", "too large", "too long")


def classify_exception(exc: BaseException) -> GenerationErrorKind:
    """
    Map a provider/transport exception onto the generation error taxonomy.

    429 -> rate limited; 401/403 -> invalid credential; 413, or 400 that
    mentions tokens or context length -> payload too large; connection
    and timeout failures -> network; other HTTP statuses -> provider error.
    """
    if isinstance(exc, (openai.APIConnectionError, TimeoutError)):
        return GenerationErrorKind.NETWORK

    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        if status == 429:
            return GenerationErrorKind.RATE_LIMITED
        if status in (401, 403):
            return GenerationErrorKind.INVALID_CREDENTIAL
        if status == 413:
            return GenerationErrorKind.PAYLOAD_TOO_LARGE
        if status == 400 and any(hint in str(exc).lower() for hint in _SIZE_HINTS):
            return GenerationErrorKind.PAYLOAD_TOO_LARGE
        return GenerationErrorKind.PROVIDER_ERROR

    return GenerationErrorKind.UNKNOWN


def describe_failure(kind: GenerationErrorKind, exc: BaseException) -> str:
    """User-facing message for a classified failure."""
    if kind == GenerationErrorKind.RATE_LIMITED:
        return RATE_LIMIT_MESSAGE
    if kind == GenerationErrorKind.PAYLOAD_TOO_LARGE:
        return PAYLOAD_TOO_LARGE_MESSAGE
    if kind == GenerationErrorKind.INVALID_CREDENTIAL:
        return f"Invalid API key: {exc}"
    if kind == GenerationErrorKind.NETWORK:
        return f"Network error - check your connection ({exc})"
    return f"LLM generation failed: {exc}"


class LLMClient:
    """
    LLM client using LangChain's ChatOpenAI with OpenRouter.

    Thin infrastructure layer: one request in, one LLMCallResult out.
    Prompt construction, retries and parsing live in repositories.

    Features:
    - OpenRouter API integration via LangChain
    - Per-request API keys (falls back to the configured key)
    - Only the configured key's ChatOpenAI client is cached
    - Local input size check before any network call
    - Provider errors classified into GenerationErrorKind
    - Structured logging with trace IDs

    Usage:
        client = LLMClient(config)
        await client.connect()

        result = await client.call_once(prompt, system_prompt=SYSTEM_PROMPT)
        if result.success:
            print(result.raw_text)

        await client.close()
    """

    def __init__(self, config: LLMConfig):
        """
        Initialize LLM client with configuration.

        Args:
            config: LLM configuration
        """
        self.config = config
        self._default_llm: Optional[ChatOpenAI] = None
        self._is_connected = False

        logger.info(
            "LLMClient initialized",
            default_model=config.default_model,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens
        )

    async def connect(self) -> None:
        """
        Prepare the client for use.

        Builds the ChatOpenAI client for the configured key, if there is
        one. No API call is made; keys are validated on first use.

        Raises:
            LLMError: If client construction fails
        """
        if self._is_connected:
            logger.warning("LLM client already connected")
            return

        trace_id = current_trace_id()
        logger.info("Initializing LLM client", trace_id=trace_id)

        try:
            if self.config.openrouter_api_key:
                self._get_llm(self.config.openrouter_api_key)
            self._is_connected = True
            logger.info(
                "LLM client initialized successfully",
                has_default_key=bool(self.config.openrouter_api_key),
                trace_id=trace_id,
            )
        except Exception as e:
            error_msg = f"Failed to initialize LLM client: {e}"
            logger.error(error_msg, error_type=type(e).__name__, trace_id=trace_id)
            raise LLMError(error_msg) from e

    async def close(self) -> None:
        """Close LLM client and release resources."""
        trace_id = current_trace_id()
        logger.info("Closing LLM client", trace_id=trace_id)

        self._is_connected = False
        self._default_llm = None

        logger.info("LLM client closed", trace_id=trace_id)

    def is_connected(self) -> bool:
        """Check if LLM client is connected."""
        return self._is_connected

    def _get_llm(self, api_key: str) -> ChatOpenAI:
        """
        Return a ChatOpenAI client for an API key.

        Only the configured key's client is kept; per-request keys get a
        fresh client that is dropped after the call.
        """
        if api_key != self.config.openrouter_api_key:
            return self._build_llm(api_key)
        if self._default_llm is None:
            self._default_llm = self._build_llm(api_key)
        return self._default_llm

    def _build_llm(self, api_key: str) -> ChatOpenAI:
        # Retries are owned by the generation layer, so the SDK must not retry
        return ChatOpenAI(
            model=self.config.default_model,
            api_key=SecretStr(api_key),
            base_url=self.config.base_url,
            temperature=self.config.temperature,
            max_completion_tokens=self.config.max_tokens,
            top_p=self.config.top_p,
            timeout=self.config.timeout_seconds,
            max_retries=0,
        )

    async def call_once(
        self,
        prompt: str,
        system_prompt: str,
        credential: Optional[str] = None,
    ) -> LLMCallResult:
        """
        Send one generation request.

        Args:
            prompt: User prompt
            system_prompt: System instruction
            credential: API key for this request; configured key if None

        Returns:
            LLMCallResult; failures carry an error kind and message

        Raises:
            LLMError: If the client is used before connect()
        """
        if not self.is_connected():
            raise LLMError("LLM client is not connected")

        trace_id = current_trace_id()
        api_key = credential or self.config.openrouter_api_key

        if not api_key:
            logger.warning("LLM call attempted without API key", trace_id=trace_id)
            return LLMCallResult.failed(
                GenerationErrorKind.INVALID_CREDENTIAL, MISSING_CREDENTIAL_MESSAGE
            )

        try:
            InputValidator.validate_total_chars(
                prompt=prompt,
                system_prompt=system_prompt,
                max_chars=self.config.max_input_chars
            )
        except ValueError as e:
            logger.warning("LLM input rejected before sending", error=str(e), trace_id=trace_id)
            return LLMCallResult.failed(
                GenerationErrorKind.PAYLOAD_TOO_LARGE, f"{PAYLOAD_TOO_LARGE_MESSAGE} {e}"
            )

        logger.info(
            "Sending LLM generation request",
            prompt_length=len(prompt),
            system_prompt_length=len(system_prompt),
            model=self.config.default_model,
            trace_id=trace_id
        )

        messages: List[BaseMessage] = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))

        try:
            response = await self._get_llm(api_key).ainvoke(messages)
        except Exception as e:
            kind = classify_exception(e)
            logger.warning(
                "LLM generation request failed",
                error_kind=kind.value,
                error_type=type(e).__name__,
                error=str(e),
                trace_id=trace_id
            )
            return LLMCallResult.failed(kind, describe_failure(kind, e))

        content = str(response.content) if response and response.content else ""
        if not content.strip():
            logger.warning("LLM returned empty response", trace_id=trace_id)
            return LLMCallResult.failed(
                GenerationErrorKind.EMPTY_RESPONSE, "LLM returned empty response"
            )

        logger.info(
            "LLM response received",
            response_length=len(content),
            trace_id=trace_id
        )
        return LLMCallResult.ok(content)

    async def verify_credential(self, api_key: str) -> Tuple[bool, Optional[str]]:
        """
        Check an API key with a tiny request.

        Returns:
            (True, None) if the key works, else (False, reason)
        """
        result = await self.call_once("Hello", system_prompt="", credential=api_key)
        if result.success:
            return True, None
        return False, result.error or "Invalid API key"
