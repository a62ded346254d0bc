from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Storefront API"
    DATABASE_URL: str = "sqlite:///./storefront.db"
    LOG_LEVEL: str = "INFO"

    # Signing key for the bearer tokens issued by the auth gateway
    SECRET_KEY: str = "change-me"

    # Product prices are stored in this currency
    BASE_CURRENCY: str = "USD"

    # Defaults for new inventory rows
    DEFAULT_LOW_STOCK_THRESHOLD: int = 5
    DEFAULT_INVENTORY_LOCATION: str = "Main Warehouse"

    # Bulk inventory updates are committed in chunks of this size
    BULK_UPDATE_BATCH_SIZE: int = 100

    # Attempts for compare-and-swap quantity writes before giving up
    STOCK_CAS_RETRIES: int = 3

    DELIVERY_TIMEOUT_SECONDS: float = 15.0

    model_config = {"env_file": ".env"}


settings = Settings()
