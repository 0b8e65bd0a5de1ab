"""
HTTP retrieval of external calendar feeds.
"""
import re
from typing import Optional

import requests

from ..utils.errors import FetchTimeoutError, HttpError, ValidationError
from ..utils.logger import get_logger
from config.settings import sync_config


class FeedFetcher:
    """Downloads ICS feeds from allow-listed hosts."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        allowed_url_pattern: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout if timeout is not None else sync_config.fetch_timeout_seconds
        pattern = allowed_url_pattern if allowed_url_pattern is not None else sync_config.allowed_url_pattern
        self.allowed_url = re.compile(pattern, re.IGNORECASE) if pattern else None
        self.session = session or requests.Session()
        self.logger = get_logger("feed_fetcher")

    def validate_url(self, url: str) -> str:
        """Reject URLs outside the configured feed hosts."""
        url = (url or "").strip()
        if not url:
            raise ValidationError("Feed URL is required")
        if self.allowed_url is not None and not self.allowed_url.match(url):
            raise ValidationError(f"Feed URL is not an allowed calendar address: {url}")
        return url

    def fetch(self, url: str, timeout: Optional[float] = None) -> str:
        """Return the feed body as text.

        Raises:
            ValidationError: URL not allowed
            FetchTimeoutError: No complete response within the timeout
            HttpError: Non-2xx status or transport failure
        """
        url = self.validate_url(url)
        timeout = timeout if timeout is not None else self.timeout
        headers = {
            "User-Agent": sync_config.user_agent,
            "Accept": "text/calendar, text/plain;q=0.9, */*;q=0.1",
            "Cache-Control": "no-cache",
        }

        try:
            response = self.session.get(url, headers=headers, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            self.logger.warning("Feed fetch timed out", url=url, timeout=timeout)
            raise FetchTimeoutError(f"Feed fetch timed out after {timeout}s") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            self.logger.warning("Feed host returned error status", url=url, status_code=status)
            raise HttpError(f"Feed host returned HTTP {status}", status_code=status) from e
        except requests.exceptions.RequestException as e:
            self.logger.warning("Feed fetch failed", url=url, error=str(e))
            raise HttpError(f"Feed fetch failed: {e}") from e

        self.logger.info("Feed fetched", url=url, bytes=len(response.content))
        return response.text
