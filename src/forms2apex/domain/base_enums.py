from enum import Enum


class UnitKind(str, Enum):
    """Kind of legacy source unit being converted."""
    TRIGGER = "trigger"
    PROGRAM_UNIT = "program-unit"
    VALIDATION = "validation"
    PROCESS = "process"


class GenerationStrategy(str, Enum):
    """Generation plan chosen from the size of a source block."""
    SINGLE = "single"
    CHUNKED = "chunked"
    MULTI_PHASE = "multi-phase"


class ChunkType(str, Enum):
    """Semantic classification of a chunk of source lines."""
    DECLARATIONS = "declarations"
    VALIDATION = "validation"
    BUSINESS_LOGIC = "business-logic"
    DML = "dml"
    EXCEPTION_HANDLING = "exception-handling"
    FULL = "full"


class GenerationStatus(str, Enum):
    """Observable states of one generation run."""
    IDLE = "idle"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    ASSEMBLING = "assembling"
    COMPLETE = "complete"
    ERROR = "error"


class GenerationErrorKind(str, Enum):
    """Classification of a failed remote generation call."""
    RATE_LIMITED = "rate_limited"
    INVALID_CREDENTIAL = "invalid_credential"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    NETWORK = "network"
    EMPTY_RESPONSE = "empty_response"
    PROVIDER_ERROR = "provider_error"
    INVALID_INPUT = "invalid_input"
    UNKNOWN = "unknown"

    @property
    def is_retryable(self) -> bool:
        """Credential, size and input failures cannot succeed on a second try."""
        return self not in (
            GenerationErrorKind.INVALID_CREDENTIAL,
            GenerationErrorKind.PAYLOAD_TOO_LARGE,
            GenerationErrorKind.INVALID_INPUT,
        )
