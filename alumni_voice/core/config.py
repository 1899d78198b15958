"""Application configuration."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI (speech synthesis and transcription)
    openai_api_key: str

    # Twilio
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_phone_number: str

    # Database
    database_url: str

    # Platform
    platform_name: str = "Alumni Intelligence Platform"
    seed_file: Optional[str] = None

    # Voice
    base_url: Optional[str] = None
    tts_mode: str = "say"  # say (carrier voice) or play (<Play> of /tts)
    tts_voice: str = "alloy"
    say_voice: str = "Polly.Joanna-Neural"
    gather_timeout_seconds: int = 10
    auth_max_attempts: int = 2
    access_code_digits: int = 6

    # Agent tools
    tools_gateway_url: Optional[str] = None
    tools_gateway_timeout_seconds: float = 8.0
    tools_rate_limit: int = 60
    tools_rate_window_seconds: int = 60

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
