"""Application settings using Pydantic for environment-based configuration."""
from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shopping_cart.domain.inventory import (
    ParityStockPolicy,
    StockPolicy,
    UnlimitedStockPolicy,
)
from shopping_cart.domain.value_objects import CartLimits


class Settings(BaseSettings):
    """Application settings loaded from CART_* environment variables."""

    # Application Configuration
    app_name: str = Field(default="shopping-cart", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Render logs as JSON (console output otherwise)")

    # Cart Limits
    max_items_count: int = Field(default=50, gt=0, description="Max distinct products per cart")
    max_total_quantity: int = Field(default=999, gt=0, description="Max units across all lines")
    max_total_price: Decimal = Field(
        default=Decimal("1000000"), gt=0, description="Max cart total after discounts"
    )

    # Inventory
    stock_policy: Literal["parity", "unlimited"] = Field(
        default="parity", description="Stock rule checked at checkout"
    )

    model_config = SettingsConfigDict(
        env_prefix="CART_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env.lower() == "production"

    def cart_limits(self) -> CartLimits:
        """Domain limits for new and replayed carts."""
        return CartLimits(
            max_items_count=self.max_items_count,
            max_total_quantity=self.max_total_quantity,
            max_total_price=self.max_total_price,
        )

    def build_stock_policy(self) -> StockPolicy:
        if self.stock_policy == "unlimited":
            return UnlimitedStockPolicy()
        return ParityStockPolicy()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
