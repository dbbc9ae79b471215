"""
Configuration for vSphere inventory tooling.

Reads from environment variables (VSPHERE_INVENTORY_*) with sensible defaults.
Only the connection helper and the entry script use these; the walker takes
its client explicitly.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # vCenter connection
    host: str = "vcenter.example.com"
    user: str = "administrator@vsphere.local"
    password: str = ""
    port: int = 443

    # SSL verification (self-signed vCenter certificates are common)
    verify_ssl: bool = False

    # Socket timeout applied while establishing the session (seconds)
    connect_timeout: int = 30

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "VSPHERE_INVENTORY_"


settings = Settings()
