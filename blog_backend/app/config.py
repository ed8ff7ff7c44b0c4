from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8098
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///blog.db"
    DATABASE_ECHO: bool = False

    # Auth
    AUTH_JWT_SECRET: str = ""
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_USER_HEADERS: str = "x-user-id"
    AUTH_TOKEN_HEADERS: str = "authorization,x-auth-token"

    # Posts
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 50
    MAX_TAGS_PER_POST: int = 5
    MAX_IMAGES_PER_POST: int = 8

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
