from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Roofing Estimator"
    COMPANY_NAME: str = ""

    # Breakdown tax/profit defaults (each section starts disabled)
    DEFAULT_TAX_PERCENT: float = 8.25
    DEFAULT_PROFIT_PERCENT: float = 20.0

    # Directory holding the reference catalog JSON files. Empty = bundled data.
    CATALOG_DIR: str = ""

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    class Config:
        env_file = ".env"


settings = Settings()
