from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8098
    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_PATH: str = "snip.db"
    DATABASE_URL: str = ""
    DATABASE_ECHO: bool = False

    # Posts
    POST_TTL_HOURS: int = 12
    MAX_IMAGE_BYTES: int = 100 * 1024 * 1024
    MAX_IMAGES_PER_POST: int = 10
    ALLOWED_IMAGE_TYPES: str = "image/jpeg,image/jpg,image/png,image/gif,image/svg+xml,image/heic"
    TTL_EVICTION_INTERVAL_SECONDS: int = 60
    # 超过宽限期仍未被清理任务处理的记录才会被淘汰，宽限期应长于清理任务周期
    TTL_EVICTION_GRACE_SECONDS: int = 3600

    # Local storage
    STATIC_DIR: str = "static"
    UPLOAD_DIR: str = "static/uploads"
    UPLOAD_BASE_URL: str = ""

    # OSS storage
    OSS_ACCESS_KEY_ID: str = ""
    OSS_ACCESS_KEY_SECRET: str = ""
    OSS_ENDPOINT: str = ""
    OSS_BUCKET: str = ""
    OSS_BASE_URL: str = ""
    OSS_PREFIX: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
