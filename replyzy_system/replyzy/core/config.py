"""
Application configuration loader and it handles:
- Environment variables
- LLM provider settings
- Planner settings (server-first planning, vision)
- Database configuration

And, the main purpose:
Central place for system configuration.
"""


from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./agent.db"
    LOG_LEVEL: str = "INFO"

    # LLM
    LLM_PROVIDER: str = "replyzy"  # replyzy | mock (for no-key dev)
    LLM_API_KEY: str = ""
    LLM_BASE_URL: str = "http://localhost:7200/"
    PLANNER_MODEL: str = "gpt-5-mini"
    NAVIGATOR_MODEL: str = "gpt-5-mini"
    LLM_TEMPERATURE: float = 0.1
    LLM_TOP_P: float = 0.1
    LLM_REASONING_EFFORT: str = "medium"
    LLM_TIMEOUT_SECONDS: float = 40.0

    # Planner
    USE_SERVER_FOR_FIRST_PLAN: bool = False
    SERVER_PLAN_ENDPOINT: str = ""
    USE_VISION: bool = False
    USE_VISION_FOR_PLANNER: bool = False

    # Loop limits
    MAX_STEPS: int = 100
    MAX_FAILURES: int = 3

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
