from pathlib import Path
from typing import Self

import msgspec
from loguru import logger

from cubic.utils.app_info import AppInfo

DEFAULT_BACKEND_COMMAND = ["cubic-backend"]


class Settings(msgspec.Struct):
    """
    User settings persisted to ``settings.json`` in the storage folder.

    Unknown keys left by other versions are ignored on load.
    """

    backend_command: list[str] = msgspec.field(
        default_factory=lambda: list(DEFAULT_BACKEND_COMMAND)
    )
    debug_logging_enabled: bool = False

    @classmethod
    def load(cls, app_info: AppInfo) -> Self:
        """
        Read settings from disk, writing defaults when no file exists.

        Debug logging follows the presence of the DEBUG marker file.

        :raises msgspec.DecodeError: If the settings file is malformed
        """
        settings_file = app_info.app_settings_file
        debug = _is_file(app_info.debug_file)
        try:
            settings = msgspec.json.decode(settings_file.read_bytes(), type=cls)
        except FileNotFoundError:
            logger.debug(f"No settings file at {settings_file}, using defaults")
            settings = cls(debug_logging_enabled=debug)
            settings.save(app_info)
        except msgspec.DecodeError as e:
            logger.error(f"Could not read settings file {settings_file}: {e}")
            raise

        settings.debug_logging_enabled = debug
        return settings

    def save(self, app_info: AppInfo) -> None:
        if self.debug_logging_enabled:
            app_info.debug_file.touch(exist_ok=True)
        else:
            app_info.debug_file.unlink(missing_ok=True)

        app_info.app_settings_file.write_bytes(
            msgspec.json.format(msgspec.json.encode(self), indent=4)
        )


def _is_file(path: Path) -> bool:
    return path.exists() and path.is_file()
