from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Expense Engine"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Extraction defaults
    DEFAULT_PROVINCE: str = "Ontario"
    DEFAULT_CATEGORIES: List[str] = [
        "Personal", "Food", "Gas", "Car Service", "Car Cleaning",
        "Office", "Insurance", "Telephone", "Parking",
        "Professional Development", "Health", "Entertainment", "Admin",
    ]

    # Uploads
    MAX_UPLOAD_MB: int = 10

    # Categorization backend: "rules" (local keyword rules) or "llm"
    CLASSIFIER_BACKEND: str = "rules"
    LLM_API_URL: str = "https://api.openai.com/v1/chat/completions"
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "gpt-3.5-turbo"
    LLM_TIMEOUT_SECONDS: float = 15.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
