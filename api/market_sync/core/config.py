"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    Grupos de configuracion:
    - Aplicacion/servidor: nombre, version, host, puerto, CORS
    - Base de datos: DATABASE_URL completa o por componentes, tamaño del pool
    - Fuente externa (MWX): URLs, API keys y credenciales de back-office
    - Politica de sync: limites de pagina, tope de paginas, ventana incremental
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Marketplace Sync Service")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados (recomendado para flexibilidad)
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="sync_user")
    DATABASE_PASSWORD: str = Field(default="sync_pass")
    DATABASE_NAME: str = Field(default="marketplace_db")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    # El pool se comparte entre corridas de sync concurrentes y lecturas del dashboard
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Fuente externa - Marketplace MWX
    MWX_API_BASE_URL: str = Field(default="https://api-mwxmarket.mwxmarket.ai")
    MWX_API_KEY: str = Field(default="")
    MWX_CUSTOMER_LIST_PATH: str = Field(default="/cms-service/customer/list/public")
    MWX_TRANSACTION_LIST_PATH: str = Field(default="/transaction-service/transaction/external/list")
    MWX_BACK_OFFICE_TRANSACTION_PATH: str = Field(
        default="/transaction-service/transaction/back-office/list"
    )
    MWX_AUTH_TOKEN_PATH: str = Field(default="/auth-service/token/auth")
    MWX_BACK_OFFICE_LOGIN_PATH: str = Field(
        default="/auth-service/authentication/back-office/login"
    )
    MWX_BACK_OFFICE_ORIGIN: str = Field(default="https://backoffice.mwxmarket.ai")

    # Credenciales del handshake de autenticacion (token de app + login back-office)
    MWX_APP_NAME: str = Field(default="mwx-marketplace")
    MWX_APP_KEY: str = Field(default="")
    MWX_DEVICE_ID: str = Field(default="marketplace-sync")
    MWX_DEVICE_TYPE: str = Field(default="00031312")
    MWX_IDENTIFIER: str = Field(default="")
    MWX_PASSWORD: str = Field(default="")

    # Fuente externa - Credit manager (registros de uso)
    CREDIT_MANAGER_URL: str = Field(default="https://credit-manager.mwxmarket.ai/api/v1/transactions")
    CREDIT_MANAGER_TOKEN: str = Field(default="")

    SOURCE_TIMEOUT_S: float = Field(default=60.0)

    # Politica de sincronizacion
    SYNC_DEFAULT_LIMIT: int = Field(default=500)
    SYNC_MAX_LIMIT: int = Field(default=3000)
    SYNC_MAX_PAGES: int = Field(default=1000)
    SYNC_ERROR_SAMPLE_SIZE: int = Field(default=10)
    SYNC_OVERLAP_DAYS: int = Field(default=1)
    SYNC_FULL_WINDOW_DAYS: int = Field(default=30)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuracion
settings = Settings()
