from pydantic_settings import BaseSettings
from functools import lru_cache
from pydantic import Field


class Settings(BaseSettings):
    app_name: str = "Circuit Simulation Engine"
    debug: bool = False
    env: str = "development"
    log_level: str = "INFO"

    # Server
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://localhost:3000",
        ]
    )

    # Simulation sessions
    log_ring_capacity: int = Field(default=50, ge=1)
    step_budget_ms: float = Field(default=250.0, gt=0)
    power_overload_ma: float = Field(default=500.0, gt=0)
    power_advisory_ma: float = Field(default=300.0, gt=0)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "CIRCUITSIM_"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
