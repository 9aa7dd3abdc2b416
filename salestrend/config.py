# salestrend/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    DB_DRIVER: str = "mysql+pymysql"
    DB_USER: str = "root"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "ssas_db"
    DB_HOST: str = "localhost" # 'db' inside docker-compose, 'localhost' otherwise
    DB_PORT: str = "3306"

    DATABASE_URL: Optional[str] = None

    # Connection pool: callers wait up to DB_POOL_TIMEOUT seconds for a free connection
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: int = 30

    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    LOG_LEVEL: str = "INFO"
    UPLOAD_DIR: str = "/shared_data"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def get_database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"{self.DB_DRIVER}://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

settings = Settings()
