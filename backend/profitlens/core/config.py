from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "ProfitLens Analytics API"
    api_prefix: str = "/api/v1"
    debug: bool = False
    log_level: str = "INFO"

    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    anomaly_iqr_multiplier: float = 1.5
    forecast_periods: int = 6
    forecast_max_periods: int = 36
    clv_default_margin: float = 0.10
    dso_days_per_month: int = 30
    top_n: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
