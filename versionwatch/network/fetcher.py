"""HTTP descriptor fetcher."""

import logging
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from versionwatch.branding import LibBranding
from versionwatch.core.errors import TransportError

logger = logging.getLogger(__name__)


class HttpFetcher:
    """Blocking GET of a descriptor URL. Meant to run on a worker thread."""

    def __init__(self, timeout: float = 30.0, user_agent: str | None = None):
        self.timeout = timeout
        self.user_agent = user_agent or LibBranding.user_agent()

    def fetch(self, url: str) -> bytes:
        """Return the response body, or raise TransportError."""
        req = Request(url, headers={
            'User-Agent': self.user_agent,
            'Accept': 'application/json',
        })
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                status = getattr(resp, 'status', 200)
                if not 200 <= status < 300:
                    raise TransportError(f"GET {url} returned HTTP {status}")
                return resp.read()
        except HTTPError as e:
            raise TransportError(f"GET {url} returned HTTP {e.code}") from e
        except (URLError, OSError, HTTPException, ValueError) as e:
            raise TransportError(f"GET {url} failed: {e}") from e
