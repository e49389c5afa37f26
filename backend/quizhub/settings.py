from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Required: the process refuses to start when any of these is missing or empty
	database_url: str = Field(min_length=1, validation_alias="DATABASE_URL")
	jwt_secret_key: str = Field(min_length=1, validation_alias="JWT_SECRET_KEY")
	llm_api_key: str = Field(min_length=1, validation_alias="LLM_API_KEY")
	frontend_url: str = Field(min_length=1, validation_alias="FRONTEND_URL")
	port: int = Field(validation_alias="PORT")

	host: str = Field(default="0.0.0.0", validation_alias="HOST")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Any OpenAI-compatible chat completions endpoint; Groq by default
	llm_base_url: str = Field(default="https://api.groq.com/openai/v1/chat/completions", validation_alias="LLM_BASE_URL")
	llm_model: str = Field(default="llama-3.3-70b-versatile", validation_alias="LLM_MODEL")
	llm_timeout_seconds: float = Field(default=30.0, validation_alias="LLM_TIMEOUT_SECONDS")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="meta-llama/llama-3.3-70b-instruct:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="QuizHub", validation_alias="OPENROUTER_TITLE")

	# Auth configuration
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=24 * 60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")
	bcrypt_rounds: int = Field(default=12, ge=4, le=31, validation_alias="BCRYPT_ROUNDS")

	# Per client IP, in the syntax of the `limits` package
	rate_limit: str = Field(default="100/15 minutes", validation_alias="RATE_LIMIT")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
