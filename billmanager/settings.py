import logging
import os
import sys
from datetime import date
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


def default_cache_dir() -> Path:
    """Return the per-user cache directory for the current platform."""
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches"
    xdg = os.environ.get("XDG_CACHE_HOME")
    return Path(xdg) if xdg else Path.home() / ".cache"


def default_package_cache_dir() -> Path:
    return default_cache_dir() / "typst" / "packages"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="BILLMANAGER_", extra="ignore")

    template_dir: str = str(TEMPLATES_DIR)
    template_name: str = "qr_bill.tpl"

    package_cache_dir: str = ""
    package_registry_url: str = "https://packages.typst.org"
    package_download: bool = True
    package_download_timeout: float = 30.0

    font_dirs: list[str] = []
    include_system_fonts: bool = True

    currency: str = "CHF"
    reference_type: str = "SCOR"
    reference_client_offset: int = 420
    reference_bill_offset: int = 4200

    # Compiled documents see this date instead of the wall clock.
    document_date: date = date(2024, 1, 1)

    default_iban: str = ""
    payment_terms_days: int = 30

    creditor_name: str = ""
    creditor_street: str = ""
    creditor_building_number: str = ""
    creditor_postal_code: str = ""
    creditor_city: str = ""
    creditor_country: str = "CH"

    log_level: str = "INFO"
    log_json: bool = False

    def get_package_cache_dir(self) -> Path:
        if self.package_cache_dir:
            return Path(self.package_cache_dir)
        return default_package_cache_dir()


settings = Settings()
