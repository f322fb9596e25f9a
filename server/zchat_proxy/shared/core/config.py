"""
Configuration management for the proxy server.
"""

from typing import Optional, Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.
    Uses pydantic-settings for automatic env var loading and validation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        # e.g., ZCHAT_PROXY_PORT overrides port
        env_prefix="ZCHAT_PROXY_",
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "zchat-proxy"
    environment: str = "production"
    version: str = "1.0.0"

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8787
    reload: bool = False

    # Client authentication. Unset means any well-formed sk- key is accepted.
    api_key: Optional[str] = Field(default=None, validation_alias="API_KEY")

    # Upstream service
    upstream_base_url: str = "https://chat.z.ai"
    salt_key: str = "key-@@@@)))()((9))-xxxx&&&%%%%%"
    default_fe_version: str = "prod-fe-1.0.185"
    default_model: str = "glm-4.7"
    upstream_timeout: float = 60.0
    http_max_connections: int = 100
    http_keepalive_connections: int = 20

    # Logging settings
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # CORS settings
    cors_origins: str = "*"  # Comma-separated list

    # OpenAPI docs are unauthenticated routes, so they stay off unless asked for
    enable_docs: bool = False

    def get_cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary (excluding sensitive data)."""
        data = self.model_dump()
        for field in ("api_key", "salt_key"):
            if data.get(field):
                data[field] = "***hidden***"
        return data
