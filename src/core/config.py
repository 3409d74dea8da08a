"""Configuration Management."""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Service settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="FORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Output
    output_dir: str = Field(default="components/.forge", description="Generated units root")
    project_root: str = Field(default=".", description="Project root used to locate type sources")

    # Generation
    generation_timeout_ms: int = Field(default=60_000, gt=0, description="Per-attempt timeout")
    max_attempts: int = Field(default=4, ge=1, le=10, description="Attempts per unit (initial + retries)")
    base_delay_ms: int = Field(default=2000, ge=0, description="Backoff base delay")
    jitter_ms: int = Field(default=1000, ge=0, description="Upper bound of random backoff jitter")

    # Backends
    provider: str = Field(default="", description="Preferred local provider name")
    hosted_api_url: str = Field(default="https://api.component-forge.dev/v1", description="Hosted API")
    hosted_api_token: str = Field(default="", description="Hosted API bearer token")
    backend_timeout: float = Field(default=90.0, gt=0, description="HTTP client timeout (seconds)")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Model temperature")
    max_tokens: int = Field(default=4096, gt=0, description="Max output tokens")

    # Models
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model name")
    anthropic_model: str = Field(default="claude-3-5-sonnet-20241022", description="Anthropic model")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model")
    xai_model: str = Field(default="grok-4-fast-reasoning", description="xAI model")
    openrouter_model: str = Field(default="qwen/qwen3-coder", description="OpenRouter model")
    github_model: str = Field(default="gpt-4o-mini", description="GitHub Models model")

    # HTTP service
    host: str = Field(default="0.0.0.0", description="HTTP bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="HTTP port")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    def model_names(self) -> dict[str, str]:
        """Model name per provider."""
        return {
            "gemini": self.gemini_model,
            "anthropic": self.anthropic_model,
            "openai": self.openai_model,
            "xai": self.xai_model,
            "openrouter": self.openrouter_model,
            "github": self.github_model,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
