"""Configuration settings for the application."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    API_PORT: int = 8000
    BRIDGE_PORT: int = 8002
    DEBUG: bool = False
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # Backend selection, read once per turn
    BACKEND: str = "hosted"  # Options: hosted, bridge

    # Hosted model endpoint
    HOSTED_API_URL: str = "https://api.openai.com/v1/responses"
    HOSTED_API_TOKEN: str | None = None
    HOSTED_MODEL: str = "gpt-4o-mini"
    HOSTED_TIMEOUT: float = 30.0
    HOSTED_MAX_RETRIES: int = 2

    # Bridge process
    BRIDGE_URL: str = "http://localhost:8002"
    BRIDGE_TIMEOUT: float = 120.0
    BRIDGE_HISTORY_LIMIT: int = 10
    CLAUDE_COMMAND: str = "claude"
    CLAUDE_TIMEOUT: float = 120.0

    # Agent persona
    AGENT_NAME: str = "Moss"
    AGENT_PERSONALITY: str = "Warm, a little mischievous, and fond of every flower in the garden."

    # Interaction queue
    QUEUE_DEBOUNCE_SECONDS: float = 0.2
    QUEUE_MAX_SIZE: int = 10
    QUEUE_TIMEOUT_SECONDS: float = 30.0

    # Headless garden
    GARDEN_COLS: int = 3
    GARDEN_ROWS: int = 2
    GROWTH_SECONDS: float = 10.0
    GOLD_PER_FLOWER: int = 10

    # Turn audit trail (JSON lines); disabled when unset
    TURN_LOG_PATH: str | None = None

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
