"""
Configuration management for the FuelEU Ledger API.
Loads environment variables and provides typed configuration.
"""
import json
from typing import Dict, List
from functools import lru_cache
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.compliance.fueleu import ComplianceParameters


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ========================================================================
    # Database Configuration
    # ========================================================================
    database_url: str = "sqlite:///./fueleu_ledger.db"
    db_echo: bool = False
    storage_backend: str = "sql"  # "sql" or "memory"

    @field_validator("storage_backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("sql", "memory"):
            raise ValueError("STORAGE_BACKEND must be 'sql' or 'memory'")
        return value

    # ========================================================================
    # Redis Configuration
    # ========================================================================
    redis_url: str = "redis://localhost:6379/0"
    redis_enabled: bool = True

    # ========================================================================
    # API Configuration
    # ========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4

    # ========================================================================
    # CORS Configuration
    # ========================================================================
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    cors_credentials: bool = True
    cors_methods: str = "GET,POST,OPTIONS"
    cors_headers: str = "*"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def cors_headers_list(self) -> List[str]:
        """Parse allowed CORS request headers ("*" allows any)."""
        return [header.strip() for header in self.cors_headers.split(",")]

    # ========================================================================
    # Rate Limiting
    # ========================================================================
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60
    rate_limit_per_hour: int = 1000

    # ========================================================================
    # Application Configuration
    # ========================================================================
    environment: str = "development"
    log_level: str = "info"
    debug: bool = False

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"

    # ========================================================================
    # FuelEU Compliance Parameters
    # ========================================================================
    target_intensity: float = 89.3368  # gCO2eq/MJ (2025)
    # JSON object mapping year -> target, e.g. {"2030": 85.69}
    target_intensity_overrides: str = ""
    lcv_mj_per_ton: float = 41000.0
    compliance_threshold: float = 0.02
    default_baseline_intensity: float = 91.16

    @property
    def target_overrides(self) -> Dict[int, float]:
        """Parse per-year target overrides."""
        if not self.target_intensity_overrides.strip():
            return {}
        raw = json.loads(self.target_intensity_overrides)
        return {int(year): float(target) for year, target in raw.items()}

    def compliance_parameters(self) -> ComplianceParameters:
        """Regulatory constants for the calculator and services."""
        return ComplianceParameters(
            target_intensity=self.target_intensity,
            lcv_mj_per_ton=self.lcv_mj_per_ton,
            compliance_threshold=self.compliance_threshold,
            default_baseline_intensity=self.default_baseline_intensity,
            target_overrides=self.target_overrides,
        )

    # ========================================================================
    # Pydantic Settings Configuration
    # ========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()


# Convenience exports
settings = get_settings()

# Validate critical settings in production
if settings.is_production:
    if "localhost" in settings.cors_origins.lower():
        raise ValueError(
            "CORS_ORIGINS must not include localhost in production!"
        )
