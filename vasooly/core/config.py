from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "Vasooly API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Bill splitting, settlement tracking and UPI payment links"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "vasooly"

    # UPI
    UPI_DEFAULT_CURRENCY: str = "INR"
    UPI_MAX_AMOUNT_RUPEES: int = 100000

    # QR codes
    QR_DEFAULT_SIZE: int = 256
    QR_DEFAULT_ERROR_CORRECTION: str = "M"

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
