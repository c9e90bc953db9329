from enum import Enum


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class OPENROUTER_LLM_MODELS(str, Enum):
    # Google Gemini models
    GEMINI_20_FLASH = "google/gemini-2.0-flash-001"
    GEMINI_25_FLASH = "google/gemini-2.5-flash"
    GEMINI_25_PRO = "google/gemini-2.5-pro"

    # Anthropic Claude models
    ANTHROPIC_SONNET_45 = "anthropic/claude-4.5-sonnet"
    ANTHROPIC_HAIKU_45 = "anthropic/claude-haiku-4.5"

    # OpenAI models
    GPT_4O = "openai/gpt-4o"
    GPT_4O_MINI = "openai/gpt-4o-mini"

OPEN_ROUTER_API_URL = "https://openrouter.ai/api/v1"

# -------------------------
# Generation Constants
# -------------------------

# Line-count thresholds for strategy selection (inclusive upper bounds)
SMALL_THRESHOLD_LINES = 150
MEDIUM_THRESHOLD_LINES = 400

# Target chunk size in lines; chunks are force-flushed at target * flush factor
CHUNK_TARGET_LINES = 100
CHUNK_FLUSH_FACTOR = 1.5

# Rough token approximation used for advisory estimates
CHARS_PER_TOKEN = 4
