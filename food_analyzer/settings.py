import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# read .env before the process environment is inspected
load_dotenv()


class Settings(BaseModel):
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_temperature: float = Field(default=0.1, ge=0.0, le=2.0, alias="GEMINI_TEMPERATURE")
    gemini_top_p: float = Field(default=0.8, ge=0.0, le=1.0, alias="GEMINI_TOP_P")
    gemini_top_k: int = Field(default=20, ge=1, alias="GEMINI_TOP_K")
    gemini_timeout_seconds: float = Field(default=30.0, gt=0, alias="GEMINI_TIMEOUT_SECONDS")
    gemini_max_retries: int = Field(default=1, ge=0, le=3, alias="GEMINI_MAX_RETRIES")
    gemini_relax_safety: bool = Field(default=False, alias="GEMINI_RELAX_SAFETY")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, ge=1, le=65535, alias="PORT")

    @classmethod
    def from_env(cls):
        data = {
            "GEMINI_API_KEY": os.getenv("GEMINI_API_KEY"),
            "GEMINI_MODEL": os.getenv("GEMINI_MODEL"),
            "GEMINI_TEMPERATURE": os.getenv("GEMINI_TEMPERATURE"),
            "GEMINI_TOP_P": os.getenv("GEMINI_TOP_P"),
            "GEMINI_TOP_K": os.getenv("GEMINI_TOP_K"),
            "GEMINI_TIMEOUT_SECONDS": os.getenv("GEMINI_TIMEOUT_SECONDS"),
            "GEMINI_MAX_RETRIES": os.getenv("GEMINI_MAX_RETRIES"),
            "GEMINI_RELAX_SAFETY": os.getenv("GEMINI_RELAX_SAFETY"),
            "LOG_LEVEL": os.getenv("LOG_LEVEL"),
            "HOST": os.getenv("HOST"),
            "PORT": os.getenv("PORT"),
        }
        # unset variables fall back to the field defaults
        return cls.model_validate({k: v for k, v in data.items() if v})


settings = Settings.from_env()
