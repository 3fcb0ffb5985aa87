"""
Environment Variable Loader

Loads environment variables from config/secrets.env so the Finnhub API key
is available without exporting it in every shell.

Usage:
    from quotegate.env_loader import get_api_key

    api_key = get_api_key("FINNHUB_API_KEY")
"""

import os
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from quotegate.constants import FINNHUB_API_KEY_ENV, FINNHUB_API_KEY_FALLBACK_ENV
from quotegate.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ENV_FILE = Path(__file__).parent.parent / "config" / "secrets.env"

# Default secrets file is read once, on first key lookup
_default_env_checked = False


def load_environment_variables(env_file: Optional[str] = None) -> bool:
    """
    Load environment variables from a .env file.

    Existing environment variables are never overridden.

    Args:
        env_file: Path to .env file (default: config/secrets.env)

    Returns:
        True if the file was found and loaded, False otherwise
    """
    path = Path(env_file) if env_file is not None else DEFAULT_ENV_FILE
    if not path.exists():
        logger.debug("Environment file not found: %s", path)
        return False

    load_dotenv(path, override=False)
    logger.debug("Loaded environment variables from %s", path)
    return True


def get_api_key(
    key_name: str,
    required: bool = False,
    fallbacks: Sequence[str] = (),
) -> Optional[str]:
    """
    Get an API key from environment variables.

    Args:
        key_name: Name of the environment variable (e.g., 'FINNHUB_API_KEY')
        required: If True, raise ValueError if key not found
        fallbacks: Alternative variable names checked in order

    Returns:
        API key value or None if not found

    Raises:
        ValueError: If required=True and key not found
    """
    global _default_env_checked
    if not _default_env_checked:
        _default_env_checked = True
        load_environment_variables()

    for name in (key_name, *fallbacks):
        value = os.getenv(name)
        if value:
            return value

    if required:
        raise ValueError(
            f"{key_name} not found in environment. "
            f"Add it to config/secrets.env or set it manually:\n"
            f"export {key_name}=your_key_here"
        )

    return None


def get_finnhub_api_key(required: bool = False) -> Optional[str]:
    """Finnhub key, accepting the public-prefixed variable as a fallback."""
    return get_api_key(
        FINNHUB_API_KEY_ENV,
        required=required,
        fallbacks=(FINNHUB_API_KEY_FALLBACK_ENV,),
    )


__all__ = [
    "load_environment_variables",
    "get_api_key",
    "get_finnhub_api_key",
]
