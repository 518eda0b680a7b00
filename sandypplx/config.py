from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenAI-compatible chat completions
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    chat_model: str = "gpt-4-turbo-preview"
    reformulation_model: str = ""  # optional override for query reformulation only
    chat_temperature: float = 0.7
    reformulation_temperature: float = 0.3
    chat_max_tokens: int = 4096

    # Tavily
    tavily_api_key: str = ""

    # Search provider
    search_provider: str = "tavily"  # tavily | http
    search_api_url: str = "http://localhost:8000/api/search"  # used when search_provider=http
    search_depth: str = "advanced"  # basic | advanced
    search_max_results: int = 5
    search_include_answer: bool = False
    search_include_raw_content: bool = False
    search_include_images: bool = False
    search_result_delay_ms: int = 150
    search_timeout_seconds: float = 30.0

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]


settings = Settings()
