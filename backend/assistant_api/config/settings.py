"""
Application configuration and settings.

This module uses pydantic-settings for configuration management with environment variables.
Loads .env files from both root and backend directories before the settings are built.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from assistant.orchestrator import OrchestratorConfig, ProviderSettings

from .env_loader import load_env

load_env()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "Production Assistant API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # API server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Primary remote tier (DeepSeek)
    deepseek_api_key: Optional[str] = None
    deepseek_model: str = "deepseek-chat"
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_enabled: bool = True

    # Secondary remote tier (OpenAI)
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    openai_enabled: bool = True

    # Remote call behaviour
    provider_timeout_seconds: float = 30.0
    max_tokens: int = 1000
    temperature: float = 0.7

    # Production time estimation
    history_sample_size: int = 20

    # CORS settings
    allow_origins: list = ["*"]
    allow_credentials: bool = True
    allow_methods: list = ["*"]
    allow_headers: list = ["*"]

    def orchestrator_config(self) -> OrchestratorConfig:
        """Build the fallback chain configuration from these settings."""
        return OrchestratorConfig(
            primary=ProviderSettings(
                api_key=self.deepseek_api_key,
                model=self.deepseek_model,
                base_url=self.deepseek_base_url,
                enabled=self.deepseek_enabled,
            ),
            secondary=ProviderSettings(
                api_key=self.openai_api_key,
                model=self.openai_model,
                base_url=self.openai_base_url,
                enabled=self.openai_enabled,
            ),
            timeout_seconds=self.provider_timeout_seconds,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


# Global settings instance
settings = Settings()
