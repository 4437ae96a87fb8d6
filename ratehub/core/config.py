import os
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource


class Settings(BaseSettings):
    """Service configuration.

    Pricing settings (margin, ratios, hours) are not configured here; they are
    part of each snapshot.
    """

    model_config = SettingsConfigDict(
        env_file=(".env.production", ".env"),
        case_sensitive=False,
        extra="allow",
    )

    port: int = int(os.getenv("PORT", 8000))
    api_prefix: str = "/api"

    # Database
    database_url: Optional[str] = None
    postgres_host: Optional[str] = None
    postgres_port: Optional[int] = None
    postgres_user: Optional[str] = None
    postgres_password: Optional[str] = None
    postgres_db: Optional[str] = None
    postgres_ssl: Optional[bool] = True
    cloud_sql_connection_name: Optional[str] = None
    db_pool_max_size: int = 10

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["*"]

    def build_db_url(self) -> Optional[str]:
        if self.database_url:
            return self.database_url
        if not self.postgres_db:
            return None

        credentials = f"{self.postgres_user or ''}:{self.postgres_password or ''}"
        if self.cloud_sql_connection_name:
            # Unix socket mounted by Cloud Run
            return f"postgresql://{credentials}@/{self.postgres_db}?host=/cloudsql/{self.cloud_sql_connection_name}"
        host = self.postgres_host or "127.0.0.1"
        port = self.postgres_port or 5432
        return f"postgresql://{credentials}@{host}:{port}/{self.postgres_db}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Accept CORS_ORIGINS as a comma-separated list."""

        class CommaSeparatedEnvSettings(PydanticBaseSettingsSource):
            def get_field_value(self, field, field_name):
                value = env_settings.get_field_value(field, field_name)
                if field_name == "cors_origins" and value and isinstance(value[0], str):
                    return ([v.strip() for v in value[0].split(",") if v.strip()], field_name, False)
                return value

            def __call__(self):
                return env_settings()

        return (
            init_settings,
            CommaSeparatedEnvSettings(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


settings = Settings()
