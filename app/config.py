from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    admin_token: str = "raeVenga1eez3Geeca"
    base_url: str = "http://localhost:8000"
    database_url: str = "postgresql+psycopg://postgres:postgres@db:5432/test_db"
    debug: bool = False
    github_token: str = "test_github_token"
    github_api_url: str = "https://api.github.com"
    github_webhook_secret: str = "test_webhook_secret"
    github_request_timeout: float = 10.0
    retest_phrase: str = r".*test\W+this\W+please.*"
    whitelist_phrase: str = r".*add\W+to\W+whitelist.*"
    ok_to_test_phrase: str = r".*ok\W+to\W+test.*"
    request_testing_phrase: str = "Can one of the admins verify this patch?"
    check_interval: float = 300.0
    enable_scheduler: bool = True
    sentry_dsn: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
