"""
Configuración centralizada de la aplicación
"""
import json
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # API Settings
    API_TITLE: str = "ShopSync API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Multi-tenant Shopify catalog ingestion"
    API_DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./shopsync.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_AUTO_CREATE: bool = True

    # Shopify Admin REST API
    SHOPIFY_API_VERSION: str = "2024-01"
    SHOPIFY_PAGE_SIZE: int = 250
    SHOPIFY_REQUEST_TIMEOUT: float = 30.0

    # Sync
    # Empty key leaves the sync endpoints unprotected (logged as a warning)
    SYNC_API_KEY: str = ""
    SYNC_SCHEDULER_ENABLED: bool = True
    SYNC_INTERVAL_SECONDS: int = 6 * 60 * 60
    SYNC_TENANT_TIMEOUT_SECONDS: float = 900.0
    SYNC_MAX_CONCURRENT_TENANTS: int = 1

    # Webhooks: "collection" re-syncs the whole topic collection,
    # "record" reconciles only the entity named in the payload
    WEBHOOK_RESYNC_SCOPE: str = "collection"

    LOG_LEVEL: str = "INFO"

    # CORS - Can be string (comma-separated) or JSON array
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
