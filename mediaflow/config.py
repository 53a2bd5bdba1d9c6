from __future__ import annotations

import threading

from pydantic_settings import BaseSettings, SettingsConfigDict

# Fields that must be non-blank before the client can log in
_REQUIRED_FIELDS = (
    "aad_tenant_id",
    "aad_client_id",
    "aad_secret",
    "subscription_id",
    "resource_group",
    "account_name",
)


class MediaServiceSettings(BaseSettings):
    """Media Services account access.

    The values can be retrieved with
    ``az ams account sp create --account-name <account> --resource-group <group>``
    and are read from ``MEDIASERVICES_*`` environment variables (the
    Functions host exports app settings as environment variables).
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIASERVICES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Azure AD ─────────────────────────────────────────────────────────────
    aad_tenant_id: str = ""
    aad_client_id: str = ""
    aad_secret: str = ""
    aad_endpoint: str = "https://login.microsoftonline.com"

    # ── Resource Manager ─────────────────────────────────────────────────────
    arm_endpoint: str = "https://management.azure.com/"
    subscription_id: str = ""
    resource_group: str = ""
    account_name: str = ""

    @property
    def arm_scope(self) -> str:
        return self.arm_endpoint.rstrip("/") + "/.default"

    def missing_fields(self) -> list[str]:
        return [name for name in _REQUIRED_FIELDS if not getattr(self, name).strip()]


_settings: MediaServiceSettings | None = None
_settings_lock = threading.Lock()


def get_settings() -> MediaServiceSettings:
    """Load settings once and reuse them until the process restarts."""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = MediaServiceSettings()
    return _settings


def reset_settings() -> None:
    global _settings
    with _settings_lock:
        _settings = None
