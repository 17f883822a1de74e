"""Configuration dependency."""

from typing import Annotated

from fastapi import Depends

from pocket_drive.config import ConfigManager, PocketDriveConfig


def get_app_config() -> PocketDriveConfig:  # pragma: no cover
    return ConfigManager().config


AppConfigDep = Annotated[PocketDriveConfig, Depends(get_app_config)]
