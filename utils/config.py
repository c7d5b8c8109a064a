"""
Configuration module for StudyMap
Handles API key management, paths, limits and environment settings
"""

import json
import os
from pathlib import Path
from typing import Optional, Dict, Tuple
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Constants
APP_NAME = "studymap"
CONFIG_DIR = Path(os.getenv("STUDYMAP_HOME", str(Path.home() / f".{APP_NAME}")))
CONFIG_FILE = CONFIG_DIR / ".env.json"
DB_PATH = CONFIG_DIR / "studymap.db"

# Provider settings
DEFAULT_PROVIDER = "openai"
SUPPORTED_PROVIDERS = ["openai", "openrouter"]

# Model configurations per provider.
# "document" must accept PDF file parts in chat completions.
PROVIDER_MODELS = {
    "openai": {
        "chat": "gpt-4o-mini",
        "document": "gpt-4o-mini",
        "base_url": None,  # Use default OpenAI base URL
    },
    "openrouter": {
        "chat": "anthropic/claude-3.5-haiku",
        "document": "google/gemini-2.0-flash-001",
        "base_url": "https://openrouter.ai/api/v1",
    }
}

# Environment variable fallbacks for API keys
API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

# Upload limits
MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # 5MB
ACCEPTED_MIME_TYPES = ["application/pdf", "text/plain"]

# Quiz / planner limits
QUIZ_MIN_QUESTIONS = 1
QUIZ_MAX_QUESTIONS = 20
QUIZ_DIFFICULTIES = ["easy", "medium", "hard"]
ENTIRE_SYLLABUS = "Complete Syllabus"
STUDY_HOURS_RANGE = (1, 16)

# Importance (weightage) bounds, inclusive
IMPORTANCE_MIN = int(os.getenv("STUDYMAP_IMPORTANCE_MIN", "0"))
IMPORTANCE_MAX = int(os.getenv("STUDYMAP_IMPORTANCE_MAX", "10"))

# Storage
STORAGE_QUOTA_BYTES = int(os.getenv("STUDYMAP_STORAGE_QUOTA_BYTES", str(50 * 1024 * 1024)))

# Requests and logging
REQUEST_TIMEOUT = float(os.getenv("STUDYMAP_REQUEST_TIMEOUT", "120"))
LOG_LEVEL = os.getenv("STUDYMAP_LOG_LEVEL", "INFO").upper()

# App Attribution settings for OpenRouter
APP_TITLE = "StudyMap"
APP_URL = "https://github.com/studymap/studymap"


def get_importance_range() -> Tuple[int, int]:
    """Inclusive (min, max) bounds used when validating topic importance"""
    return IMPORTANCE_MIN, IMPORTANCE_MAX


def ensure_config_directory():
    """Ensure configuration directory exists with proper permissions"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    CONFIG_DIR.chmod(0o700)


def save_config(config_data: Dict):
    """Save configuration data to config file"""
    ensure_config_directory()

    with open(CONFIG_FILE, 'w') as f:
        json.dump(config_data, f, indent=2)

    # Set file permissions to 600 (rw-------)
    CONFIG_FILE.chmod(0o600)


def save_api_key(api_key: str, provider: str = DEFAULT_PROVIDER):
    """Save API key for a specific provider to config file"""
    config = load_config()
    config[f"{provider}_api_key"] = api_key

    # If this is the first provider being configured, set it as default
    if "provider" not in config:
        config["provider"] = provider

    save_config(config)


def remove_api_key(provider: str = DEFAULT_PROVIDER):
    """Forget the stored API key of one provider, keeping the rest of the config"""
    config = load_config()
    key_name = f"{provider}_api_key"
    if key_name in config:
        del config[key_name]
        save_config(config)


def load_config() -> Dict:
    """Load configuration from config file"""
    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE, 'r') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            pass

    return {}


def load_api_key(provider: str = None) -> Optional[str]:
    """Load API key for a provider from the config file, falling back to the environment"""
    config = load_config()

    if provider is None:
        provider = config.get("provider", DEFAULT_PROVIDER)

    api_key = config.get(f"{provider}_api_key")

    if not api_key and provider in API_KEY_ENV_VARS:
        api_key = os.getenv(API_KEY_ENV_VARS[provider])

    return api_key


def get_current_provider() -> str:
    """Get the currently configured provider"""
    config = load_config()
    return config.get("provider", DEFAULT_PROVIDER)


def set_current_provider(provider: str):
    """Set the current provider"""
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported provider: {provider}")

    config = load_config()
    config["provider"] = provider
    save_config(config)


def get_provider_config(provider: str = None) -> Dict:
    """Get model configuration for a specific provider"""
    if provider is None:
        provider = get_current_provider()

    if provider not in PROVIDER_MODELS:
        raise ValueError(f"No configuration found for provider: {provider}")

    return PROVIDER_MODELS[provider]
