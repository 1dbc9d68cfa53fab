"""
Configuration for the TennisShop assistant.
Every knob is read from the environment with a sane default.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_PRODUCT_INFO_PATH = BASE_DIR / "data" / "product-info.json"

log = logging.getLogger(__name__)


class BaseConfig:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")

    # Anthropic - optional: without a key the assistant still runs flows
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")

    # LLM
    LLM_MODEL: str = os.getenv("LLM_MODEL", "claude-3-5-haiku-20241022")
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
    LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "800"))
    LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

    # Session budgets
    MAX_TOKENS_PER_SESSION: int = int(os.getenv("MAX_TOKENS_PER_SESSION", "8000"))
    MAX_CHATS_PER_SESSION: int = int(os.getenv("MAX_CHATS_PER_SESSION", "3"))
    MAX_FLOWS_PER_SESSION: int = int(os.getenv("MAX_FLOWS_PER_SESSION", "5"))
    MAX_COST_PER_CHAT: float = float(os.getenv("MAX_COST_PER_CHAT", "0.05"))
    SESSION_TIMEOUT_MINUTES: int = int(os.getenv("SESSION_TIMEOUT_MINUTES", "45"))
    SESSION_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "600"))
    SESSION_SWEEP_ENABLED: bool = os.getenv("SESSION_SWEEP_ENABLED", "true").lower() in {"1", "true", "yes", "on"}

    # Pricing (USD per 1000 tokens)
    INPUT_TOKEN_COST: float = float(os.getenv("INPUT_TOKEN_COST", "0.00015"))
    OUTPUT_TOKEN_COST: float = float(os.getenv("OUTPUT_TOKEN_COST", "0.0006"))
    USD_TO_EUR_RATE: float = float(os.getenv("USD_TO_EUR_RATE", "0.92"))

    # History
    HISTORY_MAX_MESSAGES: int = int(os.getenv("HISTORY_MAX_MESSAGES", "12"))
    HISTORY_PROMPT_MESSAGES: int = int(os.getenv("HISTORY_PROMPT_MESSAGES", "6"))

    # Catalog / locale
    PRODUCT_INFO_PATH: str = os.getenv("PRODUCT_INFO_PATH", str(DEFAULT_PRODUCT_INFO_PATH))
    STORE_TIMEZONE: str = os.getenv("STORE_TIMEZONE", "Europe/Rome")
    FEATURED_PRODUCTS_IN_PROMPT: int = int(os.getenv("FEATURED_PRODUCTS_IN_PROMPT", "5"))

    CORS_ALLOW_ORIGINS: str = os.getenv("CORS_ALLOW_ORIGINS", "")

    @property
    def llm_configured(self) -> bool:
        key = self.ANTHROPIC_API_KEY or ""
        return isinstance(key, str) and key.startswith("sk-ant-")


class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True


class ProductionConfig(BaseConfig):
    DEBUG: bool = False


class TestingConfig(BaseConfig):
    TESTING: bool = True
    ANTHROPIC_API_KEY: str = ""
    SESSION_SWEEP_ENABLED: bool = False


def get_config() -> BaseConfig:
    """Get configuration instance directly - no complex manager."""
    env = os.getenv("APP_ENV", os.getenv("FLASK_ENV", "development")).lower()
    mapping = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }
    config_class = mapping.get(env, DevelopmentConfig)
    cfg = config_class()

    if not hasattr(get_config, "_logged_startup"):
        log.info(f"⚙️ CONFIG_STARTUP | env={env} | config_class={config_class.__name__}")
        log.info(
            f"🤖 LLM_CONFIG | model={cfg.LLM_MODEL} | temp={cfg.LLM_TEMPERATURE} | "
            f"max_tokens={cfg.LLM_MAX_TOKENS} | configured={cfg.llm_configured}"
        )
        log.info(
            f"📊 LIMITS_CONFIG | tokens={cfg.MAX_TOKENS_PER_SESSION} | chats={cfg.MAX_CHATS_PER_SESSION} | "
            f"flows={cfg.MAX_FLOWS_PER_SESSION} | cost_per_chat={cfg.MAX_COST_PER_CHAT} | "
            f"timeout_min={cfg.SESSION_TIMEOUT_MINUTES}"
        )
        get_config._logged_startup = True

    return cfg
