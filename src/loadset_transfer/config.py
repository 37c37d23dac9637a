"""Settings loaded from ``LOADSET_*`` environment variables or a ``.env`` file."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from loadset_transfer.db.schemas import ASSIGNMENT_TABLE, GROUP_ALL, LOAD_SET_TABLE


class TransferSettings(BaseSettings):
    """Transfer settings."""

    model_config = SettingsConfigDict(env_prefix="LOADSET_", env_file=".env", extra="ignore")

    group_filter: str = Field(default=GROUP_ALL, description="Host group whose rows are read")
    load_set_table: str = Field(default=LOAD_SET_TABLE, description="Load set definition table key")
    assignment_table: str = Field(default=ASSIGNMENT_TABLE, description="Area assignment table key")
    strict_units: bool = Field(
        default=True, description="Fail on unknown unit labels instead of using a factor of 1.0"
    )
    fill_import_log: bool = Field(default=True, description="Request the host import log on apply")
    odbc_driver: str = Field(
        default="Microsoft Access Driver (*.mdb, *.accdb)",
        description="ODBC driver for exported Access databases",
    )
    log_level: str = Field(default="INFO")


@lru_cache
def get_settings() -> TransferSettings:
    return TransferSettings()
