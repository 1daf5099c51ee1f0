"""Configuration settings for the application."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    WORKSPACE_DIR: str = "workspace"
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # Structured generation
    PLANNER: str = "openai"  # Options: openai, anthropic
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_API_KEY: str | None = None
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"
    GENERATION_MAX_RETRIES: int = 3  # additional attempts after the first one
    GENERATION_RETRY_DELAY: float = 30.0  # seconds between attempts

    # Team and history
    COORDINATOR_NAME: str = "PM"
    HUMAN_NAME: str = "USER"
    HISTORY_RECENT_WINDOW: int = 20  # newest entries never redacted

    # Tools
    SHELL_TIMEOUT: float = 120.0
    SHELL_CONTAINER: str | None = None  # run commands via `docker exec` when set
    HTTP_TIMEOUT: float = 30.0
    HTTP_MAX_CHARS: int = 20000
    WEB_REQUEST_DELAY: float = 5.0

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
