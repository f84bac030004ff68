"""
MODULE OVERVIEW:
Application-wide configuration using Pydantic Settings.

WHAT IS HAPPENING HERE:
Every connection constant lives here: the default server address, the retry
budget and the flat retry delay. Values can be overridden with `BLITZ_`
prefixed environment variables or a `.env` file, e.g. `BLITZ_HOST=10.0.0.5`.
"""
from pydantic_settings import BaseSettings

from .models import ConnectionTarget

class Settings(BaseSettings):
    HOST: str = "192.168.1.109"
    PORT: int = 8765
    PATH: str = "/ws"
    LOG_LEVEL: str = "INFO"

    # Reconnect policy: fixed delay between attempts, no backoff.
    MAX_RETRIES: int = 5
    RETRY_DELAY_S: float = 5.0
    CONNECT_TIMEOUT_S: float = 5.0

    # Demo push server
    SERVER_PORT: int = 8765
    DEMO_PUSH_INTERVAL_S: float = 2.0

    class Config:
        env_prefix = "BLITZ_"
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

    def target(self) -> ConnectionTarget:
        return ConnectionTarget(host=self.HOST, port=self.PORT, path=self.PATH)

settings = Settings()
