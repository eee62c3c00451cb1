# backend/config.py
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional, Tuple
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

# Names of the writes performed for a single quantity change
QUANTITY_STEPS = ("movement", "restock", "product")


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./database_stockapp.db"
    FRONTEND_URL: Optional[str] = None

    # Order in which a quantity change issues its writes (each one committed separately)
    QUANTITY_STEP_ORDER: str = ",".join(QUANTITY_STEPS)

    # Products below this quantity are flagged as low stock
    LOW_STOCK_THRESHOLD: int = 10

    AUDIT_LOG_ENABLED: bool = True

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

    @field_validator("QUANTITY_STEP_ORDER")
    @classmethod
    def _check_step_order(cls, value: str) -> str:
        steps = [s.strip().lower() for s in value.split(",") if s.strip()]
        if sorted(steps) != sorted(QUANTITY_STEPS):
            raise ValueError(
                f"QUANTITY_STEP_ORDER must list each of {', '.join(QUANTITY_STEPS)} exactly once"
            )
        return ",".join(steps)

    @field_validator("LOW_STOCK_THRESHOLD")
    @classmethod
    def _check_threshold(cls, value: int) -> int:
        if value < 0:
            raise ValueError("LOW_STOCK_THRESHOLD must be >= 0")
        return value

    @property
    def quantity_step_order(self) -> Tuple[str, ...]:
        return tuple(self.QUANTITY_STEP_ORDER.split(","))


settings = Settings()
