from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/ratecard"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # Settlement charges applied on top of freight
    AWB_CHARGE: float = 50.0
    DEFAULT_FUEL_CHARGE_PCT: float = 15.0
    CGST_PCT: float = 9.0
    SGST_PCT: float = 9.0

    class Config:
        env_file = ".env"


settings = Settings()
