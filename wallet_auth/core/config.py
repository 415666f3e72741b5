from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Wallet Auth"
    log_level: str = "INFO"

    # Storage
    auth_store_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"

    # SIWE
    app_domain: str = "localhost"
    app_origin: str = "http://localhost:8000"
    siwe_nonce_ttl_seconds: int = 600  # 10 minutes
    session_ttl_seconds: int = 60 * 60 * 24 * 7  # 7 days
    sweep_interval_seconds: int = 60

    # Blockchain (Base Sepolia)
    chain_rpc_url: str = "https://sepolia.base.org"
    chain_id: int = 84532
    universal_validator_address: Optional[str] = None
    verifier_timeout_seconds: float = 10.0


settings = Settings()
