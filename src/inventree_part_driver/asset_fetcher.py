# Module: src/inventree_part_driver/asset_fetcher.py
# Description: Downloads part images into local files.

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import requests
from requests.exceptions import RequestException

logger = logging.getLogger(__name__)

SUCCESS_STATUS_CODES = (200, 201)
CHUNK_SIZE = 8192


class AssetFetcher:
    """Fetches binary assets (part images) over HTTP into the local file system."""

    def __init__(self, image_dir: Optional[Path] = None, http: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.image_dir = Path(image_dir) if image_dir is not None else Path(tempfile.gettempdir())
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def destination_for(self, part_pk: int) -> Path:
        """Returns the image file path reserved for one part."""
        return self.image_dir / f"part_{part_pk}_image.tmpfile"

    def fetch_asset(self, url: str, destination: Union[str, Path]) -> bool:
        """
        Downloads url into destination, following redirects.

        The body is written to a temporary file next to destination and only
        moved into place when the transfer completed with HTTP 200 or 201.
        A failed download leaves no file behind.

        Returns:
            True if the file was downloaded and saved.
        """
        destination = Path(destination)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            fd, partial_name = tempfile.mkstemp(prefix=f".{destination.name}.", dir=destination.parent)
        except OSError as e:
            logger.error(f"Failed to create file on the disk for {destination}: {e}")
            return False

        partial = Path(partial_name)
        try:
            with os.fdopen(fd, 'wb') as stream:
                with self.http.get(url, stream=True, allow_redirects=True, timeout=self.timeout) as response:
                    if response.status_code not in SUCCESS_STATUS_CODES:
                        logger.warning(f"Failed to download {url}. Response code: {response.status_code}")
                        return False
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            stream.write(chunk)
            os.replace(partial, destination)
            logger.info(f"Image saved to {destination}")
            return True
        except (RequestException, OSError) as e:
            logger.warning(f"Failed to download {url}: {e}")
            return False
        finally:
            if partial.exists():
                partial.unlink()
