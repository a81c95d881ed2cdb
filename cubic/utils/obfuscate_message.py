"""
This module is to be used with loguru to remove potentially sensitive information
such as the user's name or Minecraft session secrets.
"""

import re

# Launch arguments whose value identifies or authenticates the player
_SECRET_ARGUMENTS = ("accessToken", "uuid", "xuid", "clientId")


def obfuscate_message(
    message: str, anonymize_path: bool = True, hide_secrets: bool = True
) -> str:
    """
    Obfuscate the message such that it does not reveal user information.

    The message may contain a path, in which case the path will be anonymized,
    and launch arguments, in which case session secrets will be masked.

    Args:
        message: The message to obfuscate.
        anonymize_path: Whether to anonymize the path in the message.
        hide_secrets: Whether to mask the values of session arguments.

    Returns:
        The obfuscated message.
    """
    if anonymize_path:
        message = _anonymize_path(message)
    if hide_secrets:
        message = _hide_secrets(message)

    return message


def _anonymize_path(message: str) -> str:
    """
    Anonymize the path in the message such that
    it does not reveal user information such as usernames.

    The input message may or may not contain a path at all.

    OS agnostic.
    """
    # Windows - Only remove the username, keep the drive letter
    message = re.sub(r"([A-Z]:\\Users\\)[^\\]+\\", r"\1...\\", message)
    # macOS
    message = re.sub(r"/Users/[^/]+/", r"/Users/.../", message)
    # Linux - Only remove the username
    message = re.sub(r"/home/[^/]+/", r"/home/.../", message)

    return message


def _hide_secrets(message: str) -> str:
    """
    Mask the value following ``--accessToken`` and similar arguments,
    whether it is separated by a space, an equals sign, or sits in a
    quoted list element.
    """
    names = "|".join(_SECRET_ARGUMENTS)
    return re.sub(
        rf"(--(?:{names})(?:=|['\"]?,?\s*['\"]?|\s+))[^\s'\",\]]+",
        r"\1***",
        message,
    )
