"""
Quality Center server helpers: URL building and reachability check.
"""

import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse


HEALTH_PAGE = "servlet/tdservlet/TDAPI_GeneralWebTreatment"


def join_url(base: str, relative: str) -> str:
    """
    Join a base URL and a relative path with exactly one "/" between them.

    Args:
        base: Base URL, with or without a trailing slash
        relative: Relative path, with or without a leading slash

    Returns:
        The joined URL
    """
    return base.rstrip("/") + "/" + relative.lstrip("/")


@dataclass
class ServerCheckResult:
    """Outcome of a server reachability check."""
    ok: bool
    url: Optional[str] = None
    message: str = ""


class QualityCenterServer:
    """A Quality Center server reachable over HTTP."""

    def __init__(self, url: str, timeout_seconds: float = 10.0):
        """
        Initialize the server handle.

        Args:
            url: Server base URL, e.g. http://qc.example.com/qcbin
            timeout_seconds: Timeout for the HEAD request
        """
        self.logger = logging.getLogger(__name__)
        self.url = (url or "").strip()
        self.timeout_seconds = timeout_seconds

    @property
    def health_url(self) -> str:
        return join_url(self.url, HEALTH_PAGE)

    def check(self, accept_empty: bool = False) -> ServerCheckResult:
        """
        Check the server answers a HEAD request on its API page with 200.

        Args:
            accept_empty: Report a blank URL as valid instead of an error

        Returns:
            ServerCheckResult describing the outcome
        """
        if not self.url:
            if accept_empty:
                return ServerCheckResult(ok=True, message="No server URL set")
            return ServerCheckResult(ok=False, message="The Quality Center server URL must be defined")

        url = self.health_url
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return ServerCheckResult(ok=False, url=url, message=f"Malformed server URL: {self.url}")

        request = urllib.request.Request(url, method="HEAD")
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as response:
                status = getattr(response, "status", None) or response.getcode()
                if status != 200:
                    return ServerCheckResult(ok=False, url=url, message=f"{status} {response.reason}")
        except urllib.error.HTTPError as e:
            return ServerCheckResult(ok=False, url=url, message=f"{e.code} {e.reason}")
        except (urllib.error.URLError, OSError, ValueError) as e:
            self.logger.debug(f"Server check failed for {url}: {e}")
            return ServerCheckResult(
                ok=False, url=url,
                message=f"Error opening a connection to the Quality Center server: {e}"
            )

        self.logger.info(f"Quality Center server reachable at {self.url}")
        return ServerCheckResult(ok=True, url=url, message="OK")
