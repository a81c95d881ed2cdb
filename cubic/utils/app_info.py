from pathlib import Path

from lxml import etree, objectify
from platformdirs import PlatformDirs


class AppInfo:
    """
    Provides information about the application and its related directories.

    This class encapsulates metadata about the application and provides properties to
    access important directories such as user data and log folders. The directories are determined
    using the `platformdirs` package, ensuring platform-specific conventions are adhered to.

    Unlike a process-wide singleton, each AppInfo is constructed explicitly and handed
    to whatever needs it, so tests can point ``storage_folder`` somewhere temporary.

    Examples:
        >>> app_info = AppInfo()
        >>> print(app_info.app_name)
        >>> print(app_info.app_storage_folder)
    """

    def __init__(
        self,
        storage_folder: Path | None = None,
        log_folder: Path | None = None,
    ) -> None:
        """
        Initialize the `AppInfo` instance, setting application metadata and determining important directories.

        Args:
            storage_folder: Overrides the platform user data folder.
            log_folder: Overrides the platform user log folder.
        """
        # cubic/utils/app_info.py -> repository root
        self._application_folder = Path(__file__).resolve().parent.parent.parent

        # Application metadata

        self._app_name = "Cubic"

        self._app_version = "Unknown version"
        version_file = self._application_folder / "version.xml"
        if version_file.exists():
            root = objectify.parse(
                str(version_file), parser=etree.XMLParser(recover=True)
            )
            ver = root.find("version")
            if ver is not None and ver.text is not None:
                self._app_version = ver.text

        # Define important directories using platformdirs

        platform_dirs = PlatformDirs(appname=self._app_name, appauthor=False)
        self._app_storage_folder: Path = storage_folder or Path(
            platform_dirs.user_data_dir
        )
        self._user_log_folder: Path = log_folder or Path(platform_dirs.user_log_dir)

        # Derive some secondary paths

        self._settings_file: Path = self._app_storage_folder / "settings.json"
        self._debug_file: Path = self._app_storage_folder / "DEBUG"

        # Make sure important directories exist

        self._app_storage_folder.mkdir(parents=True, exist_ok=True)
        self._user_log_folder.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """
        Get the name of the application.

        Returns:
            str: The name of the application.
        """
        return self._app_name

    @property
    def app_version(self) -> str:
        """
        Get the application version string.

        Returns:
            str: The version of the application.
        """
        return self._app_version

    @property
    def application_folder(self) -> Path:
        """
        Get the path to the folder the application is installed in.

        Returns:
            Path: The path to the application's main folder.
        """
        return self._application_folder

    @property
    def app_storage_folder(self) -> Path:
        """
        Get the path to the folder where user-specific data for the application is stored.

        This directory is determined using platform-specific conventions.

        Returns:
            Path: The path to the user-specific data folder.
        """
        return self._app_storage_folder

    @property
    def app_settings_file(self) -> Path:
        """
        Get the path to the settings file. May or may not exist.
        """
        return self._settings_file

    @property
    def debug_file(self) -> Path:
        """
        Get the path of the marker file that turns on debug logging.
        """
        return self._debug_file

    @property
    def user_log_folder(self) -> Path:
        """
        Get the path to the folder where application logs are stored for the user.

        This directory is determined using platform-specific conventions.

        Returns:
            Path: The path to the user-specific log folder.
        """
        return self._user_log_folder

    @property
    def log_file(self) -> Path:
        return self._user_log_folder / f"{self._app_name}.log"

    @property
    def old_log_file(self) -> Path:
        return self._user_log_folder / f"{self._app_name}.old.log"
