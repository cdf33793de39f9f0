from dataclasses import dataclass
import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_COMPLETION_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_COMPLETION_MODEL = "llama-3.1-70b-versatile"
# Hard ceiling on output tokens regardless of MAX_TOKENS
COMPLETION_MAX_TOKENS_CAP = 500


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        logger.warning(f"Invalid integer for {name}: '{raw}'. Using default {default}.")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        logger.warning(f"Invalid number for {name}: '{raw}'. Using default {default}.")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    app_env: str = "development"

    # Completion service (OpenAI-compatible endpoint, Groq by default)
    completion_api_key: str = ""
    completion_base_url: str = DEFAULT_COMPLETION_BASE_URL
    completion_model: str = DEFAULT_COMPLETION_MODEL
    max_tokens: int = 200
    temperature: float = 0.8
    top_p: float = 0.9
    completion_timeout: float = 20.0

    # Knowledge base cache
    cache_ttl: float = 300.0
    cache_max_size: int = 100

    # Retrieval
    rag_top_k: int = 5
    rag_similarity_threshold: float = 0.2
    rag_max_context_length: int = 2000

    # Sessions
    history_max_turns: int = 20
    history_prompt_turns: int = 6
    max_message_length: int = 1000

    # Language handling
    primary_language: str = "en"
    translation_enabled: bool = True

    # Empty means the bundled data/businesses.json
    business_data_path: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and a .env file, if present)."""
        load_dotenv()
        settings = cls(
            app_env=os.getenv("APP_ENV", "development").lower(),
            completion_api_key=os.getenv("GROQ_API_KEY", ""),
            completion_base_url=os.getenv("GROQ_BASE_URL", DEFAULT_COMPLETION_BASE_URL),
            completion_model=os.getenv("GROQ_MODEL", DEFAULT_COMPLETION_MODEL),
            max_tokens=_env_int("MAX_TOKENS", 200),
            temperature=_env_float("TEMPERATURE", 0.8),
            top_p=_env_float("TOP_P", 0.9),
            completion_timeout=_env_float("COMPLETION_TIMEOUT_S", 20.0),
            cache_ttl=_env_float("CACHE_TTL_S", 300.0),
            cache_max_size=_env_int("CACHE_MAX_SIZE", 100),
            rag_top_k=_env_int("RAG_TOP_K", 5),
            rag_similarity_threshold=_env_float("RAG_SIMILARITY_THRESHOLD", 0.2),
            rag_max_context_length=_env_int("RAG_MAX_CONTEXT_LENGTH", 2000),
            history_max_turns=_env_int("HISTORY_MAX_TURNS", 20),
            history_prompt_turns=_env_int("HISTORY_PROMPT_TURNS", 6),
            max_message_length=_env_int("MAX_MESSAGE_LENGTH", 1000),
            primary_language=os.getenv("PRIMARY_LANGUAGE", "en").lower(),
            translation_enabled=_env_bool("TRANSLATION_ENABLED", True),
            business_data_path=os.getenv("BUSINESS_DATA_PATH", ""),
        )
        settings.validate()
        return settings

    @property
    def has_completion(self) -> bool:
        return bool(self.completion_api_key)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def request_max_tokens(self) -> int:
        return min(self.max_tokens, COMPLETION_MAX_TOKENS_CAP)

    def validate(self) -> bool:
        if not self.has_completion:
            logger.warning("GROQ_API_KEY not set. AI responses are disabled; fallback replies will be used.")
        if self.history_max_turns < 2:
            raise ValueError("HISTORY_MAX_TURNS must be at least 2 to hold one exchange.")
        if not 0.0 <= self.rag_similarity_threshold <= 1.0:
            raise ValueError("RAG_SIMILARITY_THRESHOLD must be within [0, 1].")
        logger.info(f"Settings loaded (env={self.app_env}, model={self.completion_model}, completion={'on' if self.has_completion else 'off'}).")
        return True
