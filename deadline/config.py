from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Google Custom Search (web + image)
    google_api_key: str = ""
    google_search_engine_id: str = ""
    google_search_url: str = "https://www.googleapis.com/customsearch/v1"

    # Web search
    search_pages: int = 3
    search_page_size: int = 10
    search_page_delay_seconds: float = 0.3

    # Scraping
    max_articles_to_scrape: int = 18
    max_reddit_articles: int = 2
    article_timeout_seconds: float = 15.0
    article_max_chars: int = 5000
    min_article_chars: int = 100
    image_timeout_seconds: float = 10.0
    max_images: int = 10

    # LLM (Groq via its OpenAI-compatible endpoint)
    groq_api_key: str = ""
    llm_base_url: str = "https://api.groq.com/openai/v1"
    llm_model: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.1
    llm_max_tokens: int = 8000

    # Synthesis prompt limits
    synthesis_max_articles: int = 15
    synthesis_article_chars: int = 4000
    synthesis_max_snippets: int = 15

    # Update analysis
    updates_max_articles: int = 10
    updates_default_lookback_days: int = 30

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Site
    api_secret_key: str = ""
    revalidate_base_url: str = ""  # NEXT_PUBLIC_BASE_URL of the site
    revalidate_timeout_seconds: float = 10.0

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
