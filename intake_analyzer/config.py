"""Configuration settings for the intake analyzer"""
import logging
import os
from dotenv import load_dotenv

load_dotenv()

# Text extraction
MIN_EXTRACTED_TEXT_LENGTH = 100  # Below this, extracted text is treated as a failed extraction
MAX_PROMPT_CHARS = 50000         # Document text sent to the LLM and stored per record

# LLM Configuration
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
PLACEHOLDER_API_KEYS = {"", "your_openai_api_key_here", "changeme"}
LLM_MODELS = {
    "flash": os.getenv("LLM_MODEL_FAST", "gpt-5-mini"),
    "pro": os.getenv("LLM_MODEL_THOROUGH", "gpt-5"),
}
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))
AI_DEFAULT_CONFIDENCE = 0.5  # Used when the LLM omits a score for a field it returned

# Deterministic path
REGEX_MODEL_ID = "regex-enhanced-v2"

# Persistence (Supabase REST)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
LETTERS_TABLE = "demand_letters"
PERSIST_TIMEOUT_SECONDS = float(os.getenv("PERSIST_TIMEOUT_SECONDS", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def ai_configured(api_key=OPENAI_API_KEY) -> bool:
    """True when an API key is set and is not a template placeholder"""
    return bool(api_key) and api_key.strip() not in PLACEHOLDER_API_KEYS


def persistence_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY)


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
