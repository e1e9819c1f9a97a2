import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional
from dotenv import load_dotenv, find_dotenv

class ConfigError(Exception):
    """Custom exception for configuration errors."""
    pass

logger = logging.getLogger(__name__)

@dataclass
class AppConfig:
    """Driver configuration data."""
    server_url: str
    username: Optional[str] = None
    password: Optional[str] = None
    request_timeout: Optional[float] = None # None waits indefinitely
    image_dir: Optional[Path] = None
    driver_id: int = 1

    def credentials(self) -> Dict[str, str]:
        """Returns the credential mapping expected by connect(), empty if no user is configured."""
        if not self.username:
            return {}
        return {"username": self.username, "password": self.password or ""}

    @classmethod
    def load(cls) -> 'AppConfig':
        """
        Loads configuration from environment variables.

        Loads .env file first, then checks environment variables.
        Raises ConfigError if required variables are missing or malformed.
        """
        dotenv_path = find_dotenv(usecwd=True) # Search in current working directory and upwards
        logger.debug(f"Attempting to load .env file from: {dotenv_path if dotenv_path else 'Not found'}")
        found_dotenv = load_dotenv(dotenv_path=dotenv_path, override=False) # Don't override existing env vars
        logger.debug(f".env file found: {found_dotenv}")

        url = os.environ.get("INVENTREE_SERVER_URL")
        username = os.environ.get("INVENTREE_USERNAME")
        password = os.environ.get("INVENTREE_PASSWORD")
        timeout_str = os.environ.get("INVENTREE_REQUEST_TIMEOUT")
        image_dir = os.environ.get("INVENTREE_IMAGE_DIR")
        driver_id_str = os.environ.get("INVENTREE_DRIVER_ID", "1")

        logger.debug(f"INVENTREE_SERVER_URL from env/dotenv: {url}")
        logger.debug(f"INVENTREE_USERNAME from env/dotenv: {username}")
        logger.debug(f"INVENTREE_PASSWORD from env/dotenv: {'SET' if password else 'NOT SET'}") # Avoid logging the password itself
        logger.debug(f"INVENTREE_REQUEST_TIMEOUT from env/dotenv: {timeout_str}")
        logger.debug(f"INVENTREE_IMAGE_DIR from env/dotenv: {image_dir}")

        if not url:
            logger.error("INVENTREE_SERVER_URL not found in environment variables or .env file")
            raise ConfigError("INVENTREE_SERVER_URL not found in environment variables or .env file")

        request_timeout = None
        if timeout_str:
            try:
                request_timeout = float(timeout_str)
            except ValueError:
                logger.error(f"INVENTREE_REQUEST_TIMEOUT is not a number: {timeout_str}")
                raise ConfigError(f"INVENTREE_REQUEST_TIMEOUT must be a number of seconds, got '{timeout_str}'")
            if request_timeout <= 0:
                raise ConfigError(f"INVENTREE_REQUEST_TIMEOUT must be positive, got '{timeout_str}'")

        try:
            driver_id = int(driver_id_str)
        except ValueError:
            logger.error(f"INVENTREE_DRIVER_ID is not an integer: {driver_id_str}")
            raise ConfigError(f"INVENTREE_DRIVER_ID must be an integer, got '{driver_id_str}'")

        config_instance = cls(
            server_url=url,
            username=username,
            password=password,
            request_timeout=request_timeout,
            image_dir=Path(image_dir) if image_dir else None,
            driver_id=driver_id,
        )
        logger.info(
            f"AppConfig loaded: URL='{config_instance.server_url}', "
            f"User='{config_instance.username}', "
            f"Password is {'SET' if config_instance.password else 'NOT SET'}, "
            f"Timeout={config_instance.request_timeout}, "
            f"Image dir='{config_instance.image_dir}'"
        )
        return config_instance
