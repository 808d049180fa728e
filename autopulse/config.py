from pathlib import Path
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .targets import Target
from .triggers import Trigger, ManualTrigger
from .utils.host_config import get_hostname_settings_file
from .webhooks import Webhook


class Settings(BaseSettings):
    # HTTP server
    hostname: str = "0.0.0.0"
    port: int = 2875

    # Basic auth for trigger and event endpoints
    auth_username: str = "admin"
    auth_password: str = "password"

    # Event store
    database_url: str = "sqlite:///data/autopulse.db"

    # Pipeline
    check_path: bool = False  # Require the file on disk before notifying targets
    max_retries: int = Field(default=5, ge=1)  # Failed attempts before an event is Failed
    cleanup_days: int = Field(default=10, ge=1)  # Retention for NotFound/Failed events
    tick_interval_seconds: float = Field(default=1.0, gt=0)
    target_timeout_seconds: float = Field(default=300.0, gt=0)  # Per target call

    # Logging
    log_level: str = "INFO"
    log_file_path: str = "logs/autopulse.log"
    log_retention_days: int = 30

    # Named collaborators, JSON in the environment. Insertion order is dispatch order.
    triggers: Dict[str, Trigger] = Field(
        default_factory=lambda: {"manual": ManualTrigger()}
    )
    targets: Dict[str, Target] = Field(default_factory=dict)
    webhooks: Dict[str, Webhook] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        env_file=get_hostname_settings_file(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @property
    def log_directory(self) -> Path:
        """Directory holding the log files."""
        return Path(self.log_file_path).parent

    @property
    def config_file_info(self) -> dict:
        """Return information about which configuration file is being used."""
        from .utils.host_config import get_hostname, list_all_settings_files

        return {
            "hostname": get_hostname(),
            "active_config_file": get_hostname_settings_file(),
            "all_available_configs": list_all_settings_files(),
        }
