from pydantic_settings import BaseSettings
from functools import lru_cache

DEFAULT_JWT_SECRET = "change-me-in-production-tatami"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./tatami.db"
    environment: str = "development"
    allowed_origins: str = ""

    # --- Auth ---
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 480  # 8 hours
    ldap_domains: str = ""

    # --- UI ---
    authorized_theme: str = (
        "bootstrap,amelia,cerulean,cosmo,cyborg,journal,readable,"
        "simplex,slate,spacelab,spruce,superhero,united"
    )

    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = 0.0
    enable_prometheus_metrics: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_default_jwt_secret(self) -> bool:
        return self.jwt_secret.strip() == DEFAULT_JWT_SECRET

    @property
    def themes(self) -> list[str]:
        """Selectable UI themes, in configured order."""
        return _split_list(self.authorized_theme)

    @property
    def ldap_domain_list(self) -> list[str]:
        return [d.lower() for d in _split_list(self.ldap_domains)]

    def get_cors_origins(self) -> list[str]:
        """Configured origins; any origin outside production when none are set."""
        origins = _split_list(self.allowed_origins)
        if origins or self.is_production:
            return origins
        return ["*"]


def _split_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
