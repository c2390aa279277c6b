"""
log_utils.py - Console logging for sunbird-bulk scripts

Every phase logs through the standard logging module. Output is
message-only (no per-line timestamps) with an icon in front of each
line, so progress reads like:

    ✅ [profile] Published learner profile LP-01 (do_1139...)
    ⏭️ [profile] Learner profile LP-02 already exists, skipping

Set SUNBIRD_ASCII_ICONS=1 for terminals that can't show emoji.
"""

import logging
import os
from typing import Dict


# Message-only; no per-line timestamps
LOG_FORMAT = "%(message)s"

UNICODE_LEVEL_ICONS = {
    logging.DEBUG: "🔍",
    logging.INFO: "ℹ️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
}

ASCII_LEVEL_ICONS = {
    logging.DEBUG: "[.]",
    logging.INFO: "[i]",
    logging.WARNING: "[!]",
    logging.ERROR: "[X]",
    logging.CRITICAL: "[!!]",
}

# Outcome status -> icon, used for the per-entity result lines
UNICODE_STATUS_ICONS = {
    "Success": "✅",
    "Failure": "❌",
    "Skipped": "⏭️",
}

ASCII_STATUS_ICONS = {
    "Success": "[OK]",
    "Failure": "[X]",
    "Skipped": "[ ]",
}


def use_ascii() -> bool:
    return os.environ.get("SUNBIRD_ASCII_ICONS", "").lower() in {"1", "true", "yes", "on"}


def level_icons() -> Dict[int, str]:
    return ASCII_LEVEL_ICONS if use_ascii() else UNICODE_LEVEL_ICONS


def status_icon(status: str) -> str:
    """Icon for an outcome status string (Success / Failure / Skipped)."""
    table = ASCII_STATUS_ICONS if use_ascii() else UNICODE_STATUS_ICONS
    return table.get(status, "")


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        # An explicit icon (status lines) wins over the level icon
        icon = getattr(record, "icon", None) or level_icons().get(record.levelno, "")
        base = super().format(record)
        return f"{icon} {base}" if icon else base


def setup_logging(verbosity: int = 0) -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    handler.setFormatter(IconLogFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def mask_sensitive(value: str, visible_chars: int = 4) -> str:
    """
    Mask a sensitive value for safe logging.

    Returns:
        Masked string like "eyJh****Fnc9"
    """
    if not value:
        return "****"

    if len(value) <= visible_chars * 2:
        return "****"

    return f"{value[:visible_chars]}****{value[-visible_chars:]}"
