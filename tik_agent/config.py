from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./tik_agent.db"

    # OAuth / session
    app_id: str = ""
    jwt_secret: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    oauth_server_url: str = ""
    owner_open_id: str = ""
    session_expire_days: int = 365
    oauth_timeout_seconds: float = 30.0

    # Where the web OAuth callback sends the browser afterwards
    frontend_url: str = "http://localhost:8081"

    # Owner notification service
    forge_api_url: str = ""
    forge_api_key: str = ""

    # LLM (Gemini). Vertex AI when vertex_project_id is set, else API key.
    vertex_project_id: str = ""
    vertex_location: str = "us-central1"
    vertex_credentials_path: str = ""  # path to service account JSON; empty = use ADC
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    image_model: str = "imagen-3.0-generate-002"

    # Video rendering
    video_renderer: str = "creatomate"  # creatomate | huggingface | placeholder
    creatomate_api_key: str = ""
    creatomate_template_id: str = ""
    creatomate_api_url: str = "https://api.creatomate.com/v1/renders"
    render_timeout_seconds: float = 300.0
    hf_api_base: str = "https://api-inference.huggingface.co"
    hf_video_model: str = "Lightricks/LTX-Video-0.9.8-13B-distilled"
    hf_token: str = ""  # used by the interactive path when video_renderer=huggingface
    placeholder_video_url: str = "/media/placeholder.mp4"

    # Generated media (videos, thumbnails). Empty = <project>/media
    media_dir: str = ""
    media_url_prefix: str = "/media"

    # Product extraction
    product_extraction_mode: str = "auto"  # html | llm | auto
    scrape_timeout_seconds: float = 5.0

    # Redis (optional cache for product extraction; empty = no cache)
    redis_url: str = ""  # e.g. redis://localhost:6379/0
    product_cache_ttl_seconds: int = 3600

    # TikTok analytics
    tiktok_api_base: str = "https://open.tiktokapis.com/v2"

    # Batch queue driver
    queue_enabled: bool = True
    queue_poll_interval_seconds: float = 30.0
    queue_workers: int = 1

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
