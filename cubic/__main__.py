#!/usr/bin/env python3
import sys
import traceback
from types import TracebackType
from typing import Type

import loguru
from loguru import logger

from cubic.controllers.app_controller import AppController
from cubic.models.settings import Settings
from cubic.utils.app_info import AppInfo
from cubic.utils.obfuscate_message import obfuscate_message


def handle_exception(
    exc_type: Type[BaseException],
    exc_value: BaseException,
    exc_traceback: TracebackType | None,
) -> None:
    """
    This function is called (through excepthook) when the main application
    loop encounters an uncaught exception. When this happens, the error is
    logged to the log file and the application exits.
    """

    # Ignore KeyboardInterrupt exceptions, for when running through the terminal
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
    else:
        logger.opt(exception=(exc_type, exc_value, exc_traceback)).error(
            "The main application loop has failed with an uncaught exception"
        )

    sys.exit(1)


def formatter(record: "loguru.Record") -> str:
    """Custom formatter for loguru logger"""
    format_string = (
        "[{level}]"
        "[{time:YYYY-MM-DD HH:mm:ss}]"
        "[{process.id}]"
        "[{thread.name}]"
        "[{module}]"
        "[{function}][{line}]"
        " : "
    )

    record["extra"]["obfuscated_message"] = obfuscate_message(record["message"])
    return format_string + "{extra[obfuscated_message]}\n{exception}"


def configure_logging(app_info: AppInfo, debug_mode: bool) -> None:
    # We have log_file (foo.log) and old_log_file (foo.old.log). If old_log_file exists,
    # remove it. If log_file exists, rename it to old_log_file. When we pass log_file to
    # the logger as an argument, it will automatically be created.
    log_file = app_info.log_file
    old_log_file = app_info.old_log_file
    if old_log_file.exists() and old_log_file.is_file():
        old_log_file.unlink()
    if log_file.exists() and log_file.is_file():
        log_file.rename(old_log_file)

    # Remove the default stderr logger
    logger.remove()

    # Create the file logger
    logger.add(log_file, level="DEBUG" if debug_mode else "INFO", format=formatter)

    # Add a "WARNING" or higher stderr logger
    logger.add(
        sys.stderr,
        level="WARNING",
        format=formatter,
        colorize=False,
    )


def main_thread(app_info: AppInfo, settings: Settings) -> None:
    exit_code = 1
    try:
        app_controller = AppController(app_info, settings)
        exit_code = app_controller.run()
    except Exception:
        # Uncaught exceptions during the application loop are caught with excepthook
        logger.error(
            "The main application instantiation has failed with an uncaught exception:"
        )
        logger.error(traceback.format_exc())
    finally:
        logger.info("Exiting application!")
    sys.exit(exit_code)


if __name__ == "__main__":
    # Uncaught exceptions during the application loop are handled
    # through the function above
    sys.excepthook = handle_exception

    app_info = AppInfo()
    settings = Settings.load(app_info)
    configure_logging(app_info, settings.debug_logging_enabled)

    logger.info(f"Initializing {app_info.app_name} application: {app_info.app_version}")
    main_thread(app_info, settings)
