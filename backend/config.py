"""Configuration management for the SMS relay assistant."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Server Configuration
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3061"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")

# Conversation Store Configuration
STORE_BACKEND = os.getenv("STORE_BACKEND", "sqlite")
DATABASE_PATH = os.getenv("DATABASE_PATH", "./data/conversations.db")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
CONVERSATIONS_TABLE = os.getenv("CONVERSATIONS_TABLE", "conversations")

# Completion Configuration
COMPLETION_PROVIDER = os.getenv("COMPLETION_PROVIDER", "zai")
COMPLETION_API_URL = os.getenv(
    "COMPLETION_API_URL",
    "https://api.z.ai/api/paas/v4/chat/completions"
)
COMPLETION_API_KEY = os.getenv("COMPLETION_API_KEY")
COMPLETION_MODEL = os.getenv("COMPLETION_MODEL", "GLM-4.5-Flash")
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")
COMPLETION_MAX_TOKENS = int(os.getenv("COMPLETION_MAX_TOKENS", "512"))
COMPLETION_TEMPERATURE = float(os.getenv("COMPLETION_TEMPERATURE", "0.7"))
COMPLETION_DISABLE_THINKING = _get_bool("COMPLETION_DISABLE_THINKING", "true")
COMPLETION_TIMEOUT_SECONDS = float(os.getenv("COMPLETION_TIMEOUT_SECONDS", "30"))

SYSTEM_PROMPT = os.getenv(
    "SYSTEM_PROMPT",
    "You are Mchili, a concise, helpful assistant. Keep replies short and actionable. "
    "Do not reply in more than 4 sentences, and remember you are made by the Zoofam "
    "company and you are called Mchili."
)

# SMS Gateway Configuration
SMS_GATE_URL = os.getenv("SMS_GATE_URL", "https://api.sms-gate.app/3rdparty/v1/message")
SMS_GATE_USERNAME = os.getenv("SMS_GATE_USERNAME")
SMS_GATE_PASSWORD = os.getenv("SMS_GATE_PASSWORD")
SMS_TIMEOUT_SECONDS = float(os.getenv("SMS_TIMEOUT_SECONDS", "15"))

# Pipeline Configuration
SERIALIZE_PER_SENDER = _get_bool("SERIALIZE_PER_SENDER", "false")
