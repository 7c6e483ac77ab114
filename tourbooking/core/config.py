from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    MAGENTO_BASE_URL: str = "https://tourwithalpha.shop"
    MAGENTO_GRAPHQL_PATH: str = "/graphql"
    MAGENTO_API_TOKEN: str | None = None
    MAGENTO_TIMEOUT_SECONDS: float = 10.0

    DEFAULT_ALLOWED_SEATS: int = 12
    TOUR_DATE_OPTION_TITLE: str = "Tour Date"

    CART_ID_STORAGE_KEY: str = "magento_cart_id"
    CART_STORE_DIR: str = "./data/carts"

    CONTACT_PAGE_PATH: str = "/contact"
    MAX_BOOKING_SESSIONS: int = 1000

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


settings = Settings()
