"""
Configuration management for the Hunter.io MCP Server
"""
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class RetryConfig(BaseModel):
    """Retry policy for rate-limited Hunter.io calls (delays in milliseconds)"""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(3, ge=1)
    initial_delay: float = Field(1000, ge=0)
    max_delay: float = Field(10000, ge=0)
    backoff_factor: float = Field(2, ge=1)

    @model_validator(mode="after")
    def validate_delay_bounds(self):
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be greater than or equal to initial_delay")
        return self


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # API Keys
    hunter_api_key: str
    hunter_api_url: str = "https://api.hunter.io/v2"

    # Retry Configuration
    hunter_retry_max_attempts: int = Field(3, ge=1)
    hunter_retry_initial_delay: float = Field(1000, ge=0)  # milliseconds
    hunter_retry_max_delay: float = Field(10000, ge=0)  # milliseconds
    hunter_retry_backoff_factor: float = Field(2, ge=1)

    # Service Configuration
    service_name: str = "hunter-io-mcp"
    request_timeout: float = 30
    mcp_transport: str = "stdio"
    sse_host: str = "127.0.0.1"
    sse_port: int = 8000

    # Logging Configuration
    log_level: str = "INFO"
    log_file_enabled: bool = False
    log_file_path: str = "logs"
    log_rotation: str = "10 MB"
    log_retention: str = "30 days"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("hunter_api_key")
    @classmethod
    def validate_api_key(cls, v):
        """The API key must not be blank"""
        if not v or not v.strip():
            raise ValueError("HUNTER_API_KEY must not be empty")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard logging levels"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("mcp_transport")
    @classmethod
    def validate_transport(cls, v):
        valid_transports = ["stdio", "sse"]
        if v.lower() not in valid_transports:
            raise ValueError(f"MCP transport must be one of {valid_transports}")
        return v.lower()

    @model_validator(mode="after")
    def validate_retry_delays(self):
        """Ensure the backoff ceiling is not below the first delay"""
        if self.hunter_retry_max_delay < self.hunter_retry_initial_delay:
            raise ValueError(
                "HUNTER_RETRY_MAX_DELAY must be greater than or equal to HUNTER_RETRY_INITIAL_DELAY"
            )
        return self

    @property
    def retry(self) -> RetryConfig:
        """Immutable retry policy built from the environment"""
        return RetryConfig(
            max_attempts=self.hunter_retry_max_attempts,
            initial_delay=self.hunter_retry_initial_delay,
            max_delay=self.hunter_retry_max_delay,
            backoff_factor=self.hunter_retry_backoff_factor,
        )


# Global settings instance - lazy loaded
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment"""
    global _settings
    _settings = Settings()
    return _settings
