"""
Configuration module for the Forms2APEX generation service.

This module defines all configuration classes using Pydantic BaseModel and BaseSettings.
Configuration is loaded from environment variables with nested delimiter "__".

Example .env:
    LLM__OPENROUTER_API_KEY=sk-xxx
    GENERATION__MAX_ATTEMPTS=3
    APP__LOG_LEVEL=DEBUG

Usage:
    from forms2apex.config import get_settings
    settings = get_settings()
    print(settings.generation.max_attempts)
"""

from functools import lru_cache

from forms2apex.config_constants import (
    CHARS_PER_TOKEN,
    CHUNK_FLUSH_FACTOR,
    CHUNK_TARGET_LINES,
    MEDIUM_THRESHOLD_LINES,
    OPEN_ROUTER_API_URL,
    OPENROUTER_LLM_MODELS,
    SMALL_THRESHOLD_LINES,
    LogLevel,
)
from forms2apex.domain.errors import ConfigurationError

from pydantic import BaseModel, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# LLM CONFIGURATION (OpenRouter)
# =============================================================================

class LLMConfig(BaseModel):
    """
    LLM client configuration for code conversion.

    Uses OpenRouter API to access various LLM providers (Gemini, Claude, GPT-4).
    Temperature and top_p are kept low so generated code is stable across runs.
    """

    # OpenRouter API key (get from https://openrouter.ai/keys)
    # May be left empty when every request supplies its own key (X-API-Key header)
    openrouter_api_key: str = ""

    # Default model for code conversion
    # Format: "provider/model-name" (e.g., "google/gemini-2.0-flash-001")
    default_model: str = OPENROUTER_LLM_MODELS.GEMINI_20_FLASH

    # Sampling temperature (0.0-1.0)
    # Low values favour deterministic output; 0.2 keeps some flexibility for comments
    temperature: float = 0.2

    # Nucleus sampling parameter (0.0-1.0)
    top_p: float = 0.8

    # Maximum tokens in LLM response
    # A converted chunk plus its JSON explanation rarely exceeds 8K tokens
    max_tokens: int = 8192

    # Maximum characters allowed in LLM input (prompt + system prompt)
    # Requests above this are rejected locally as payload-too-large
    max_input_chars: int = 120000

    # OpenRouter API base URL (don't change unless using proxy)
    base_url: str = OPEN_ROUTER_API_URL

    # Maximum time (seconds) to wait for LLM response
    # Large chunks may take 60s+ on slower models
    timeout_seconds: int = 120


# =============================================================================
# GENERATION PIPELINE CONFIGURATION
# =============================================================================

class GenerationConfig(BaseModel):
    """
    Configuration for the generation pipeline.

    Controls strategy thresholds, chunk sizing, and retry/backoff policy.
    Thresholds are inclusive: a block of exactly small_threshold_lines lines
    is still generated with a single request.
    """

    # Blocks with at most this many lines are generated in one request
    small_threshold_lines: int = SMALL_THRESHOLD_LINES

    # Blocks with at most this many lines use the chunked strategy;
    # anything larger is multi-phase
    medium_threshold_lines: int = MEDIUM_THRESHOLD_LINES

    # Target chunk size in lines
    chunk_target_lines: int = CHUNK_TARGET_LINES

    # A chunk is force-flushed once it holds chunk_target_lines * chunk_flush_factor lines
    chunk_flush_factor: float = CHUNK_FLUSH_FACTOR

    # Attempts per remote call (first try included)
    max_attempts: int = 3

    # Backoff before attempt n+1 is backoff_base_seconds ** n
    backoff_base_seconds: float = 2.0

    # Characters per token for the advisory token estimate
    chars_per_token: int = CHARS_PER_TOKEN

    @model_validator(mode="after")
    def validate_thresholds(self) -> "GenerationConfig":
        """Ensure strategy thresholds and retry settings are coherent."""
        if self.small_threshold_lines > self.medium_threshold_lines:
            raise ValueError(
                "small_threshold_lines must not exceed medium_threshold_lines"
            )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.chunk_target_lines < 1 or self.chunk_flush_factor < 1.0:
            raise ValueError("chunk sizing must allow at least one line per chunk")
        return self

    @property
    def chunk_flush_lines(self) -> int:
        """Buffered line count at which a chunk is force-flushed."""
        return int(self.chunk_target_lines * self.chunk_flush_factor)


# =============================================================================
# SERVER CONFIGURATION
# =============================================================================

class ServerConfig(BaseModel):
    """
    FastAPI/Uvicorn server configuration.

    Used by run_dev.py and run_prod.py scripts.
    """

    # Network interface to bind (0.0.0.0 = all interfaces)
    # Use 127.0.0.1 for local-only access
    host: str = "0.0.0.0"

    # Port number to listen on
    port: int = 8000

    # Python module path for FastAPI app
    # Format: "package.module:app_variable"
    app_module: str = "forms2apex.main:app"

    # Enable hot reload on code changes (development only)
    reload: bool = True

    # Number of worker processes (production only, ignored with reload=True)
    workers: int = 1


# =============================================================================
# APPLICATION CONFIGURATION
# =============================================================================

class AppConfig(BaseModel):
    """
    General application settings.

    Controls logging verbosity and other app-wide behavior.
    """

    # Logging level: DEBUG, INFO, WARNING, ERROR
    # DEBUG: verbose, includes prompt sizes and per-attempt details
    # INFO: normal operation logging (production)
    log_level: LogLevel = LogLevel.INFO


# =============================================================================
# ROOT SETTINGS (Environment Loading)
# =============================================================================

class Settings(BaseSettings):
    """
    Root settings class that loads all configuration from environment.

    Environment variables use "__" (double underscore) as nested delimiter.
    Example: LLM__OPENROUTER_API_KEY sets settings.llm.openrouter_api_key

    No variable is strictly required: without LLM__OPENROUTER_API_KEY every
    generation request must carry its own key.
    """

    # LLM client settings (OpenRouter)
    llm: LLMConfig = LLMConfig()

    # Generation pipeline settings
    generation: GenerationConfig = GenerationConfig()

    # FastAPI server settings
    server: ServerConfig = ServerConfig()

    # Application-wide settings
    app: AppConfig = AppConfig()

    model_config = SettingsConfigDict(
        env_file=".env",            # Load from .env file in project root
        env_file_encoding="utf-8",  # UTF-8 encoding for .env file
        case_sensitive=False,       # ENV_VAR and env_var are equivalent
        env_nested_delimiter="__",  # Use __ for nested config (LLM__MAX_TOKENS)
        extra="ignore",
    )


# =============================================================================
# SINGLETON ACCESSOR
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance (singleton pattern).

    Settings are loaded once and cached for the lifetime of the application.

    Returns:
        Settings instance with all configuration loaded from environment
    """
    return Settings()


def load_settings() -> Settings:
    """
    Load settings for application startup.

    Raises:
        ConfigurationError: If any environment value fails validation
    """
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid settings: {e.error_count()} validation error(s)",
            details={
                "errors": [
                    {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]
            },
        ) from e
