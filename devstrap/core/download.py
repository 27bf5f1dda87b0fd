"""
HTTP access for source-release installs.

Provides JSON API fetches and streaming file downloads with retry logic and
exponential backoff, both built on ``requests``.
"""

import logging
import time
from pathlib import Path
from typing import Optional

import requests
from requests.exceptions import RequestException

from devstrap.core.exceptions import DownloadError

logger = logging.getLogger(__name__)

USER_AGENT = "devstrap"


def _is_client_error(error: RequestException) -> bool:
    """4xx responses will not succeed on retry."""
    response = getattr(error, "response", None)
    return response is not None and 400 <= response.status_code < 500


def _with_retries(description: str, func, max_retries: int):
    for attempt in range(max_retries):
        try:
            return func()
        except RequestException as e:
            if _is_client_error(e):
                raise DownloadError(f"{description} failed: {e}") from e

            if attempt == max_retries - 1:
                raise DownloadError(
                    f"{description} failed after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"{description} attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise DownloadError(f"{description} failed for unknown reason")


def fetch_json(
    url: str,
    headers: Optional[dict] = None,
    timeout: int = 30,
    max_retries: int = 3,
):
    """
    GET a URL and decode the JSON body.

    Raises:
        DownloadError: If the request fails after retries
    """
    request_headers = {"User-Agent": USER_AGENT}
    request_headers.update(headers or {})

    def _get():
        response = requests.get(url, headers=request_headers, timeout=timeout)
        response.raise_for_status()
        return response.json()

    return _with_retries(f"Request to {url}", _get, max_retries)


def download_file(
    url: str,
    destination: Path,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download file from URL to destination with retry logic.

    Partial files are removed before a retry and after a final failure.

    Raises:
        DownloadError: If download fails after retries
        ValueError: If URL is empty
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    def _get():
        logger.info(f"Downloading from {url}")
        try:
            response = requests.get(
                url,
                headers={"User-Agent": USER_AGENT},
                stream=True,
                timeout=timeout,
                allow_redirects=True,
            )
            response.raise_for_status()
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
        except RequestException:
            destination.unlink(missing_ok=True)
            raise
        logger.debug(f"Download complete: {destination}")
        return destination

    return _with_retries(f"Download of {url}", _get, max_retries)


__all__ = ["fetch_json", "download_file"]
