"""
Host-specific configuration file selection.

A machine can carry its own `{hostname}-settings.env` next to the shared
`settings.env`; the host file wins when it exists.
"""

import logging
import socket
from pathlib import Path

BASE_SETTINGS_FILE = "settings.env"


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split(".")[0]


def get_hostname_settings_file(directory: str = ".") -> str:
    """
    Get the settings file to load for this host.

    Args:
        directory: Directory holding the settings files

    Returns:
        str: `{hostname}-settings.env` if present, otherwise `settings.env`
    """
    base = Path(directory)
    host_settings = base / f"{get_hostname()}-settings.env"

    if host_settings.exists():
        logging.debug(f"Using host-specific configuration: {host_settings}")
        return str(host_settings)

    return str(base / BASE_SETTINGS_FILE)


def list_all_settings_files(directory: str = ".") -> list[str]:
    """List the shared and host-specific settings files that exist."""
    base = Path(directory)
    settings_files = []

    if (base / BASE_SETTINGS_FILE).exists():
        settings_files.append(str(base / BASE_SETTINGS_FILE))

    for file_path in sorted(base.glob("*-settings.env")):
        settings_files.append(str(file_path))

    return settings_files
