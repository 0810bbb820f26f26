"""
Secure logging utilities to keep tokens out of CI logs.
"""

import logging
import sys
from typing import Any, Callable, Mapping, Optional, TextIO

logger = logging.getLogger(__name__)

MASK = "***MASKED***"

# Field name fragments that mark a value as a credential
CREDENTIAL_PATTERNS = [
    'password', 'secret', 'token', 'credential', 'auth',
    'private_key', 'access_key', 'api_key',
]


def mask_credential_value(value: str, show_prefix: int = 4) -> str:
    """
    Mask a credential value, showing only a prefix for identification.

    Args:
        value: The credential value to mask
        show_prefix: Number of characters to show at the beginning

    Returns:
        Masked string like "ghp_***MASKED***"
    """
    if not value or len(value) <= show_prefix:
        return MASK

    return f"{value[:show_prefix]}{MASK}"


def is_credential_field(field_name: str) -> bool:
    field_lower = field_name.lower()
    return any(pattern in field_lower for pattern in CREDENTIAL_PATTERNS)


def safe_log_dict(data: Mapping[str, Any], logger_func: Callable[[str], None], message: str = "Data") -> None:
    """
    Log a mapping with credential-looking fields masked.

    Args:
        data: Mapping to log
        logger_func: Logger function to use (e.g., logger.info)
        message: Prefix message for the log
    """
    if not data:
        logger_func(f"{message}: (empty)")
        return

    safe_data = {}
    for key, value in data.items():
        if is_credential_field(key):
            safe_data[key] = mask_credential_value(value) if isinstance(value, str) else MASK
        else:
            safe_data[key] = value

    logger_func(f"{message}: {safe_data}")


def register_secret(value: str, stream: Optional[TextIO] = None) -> None:
    """Ask the Actions runner to redact *value* from all subsequent log output."""
    if not value:
        return
    out = stream if stream is not None else sys.stdout
    out.write(f"::add-mask::{value}\n")
