"""
HTTP GET with an explicit timeout, used by feed and website probing.
"""

from dataclasses import dataclass
from typing import Callable, Union

import requests

from curation.constants import FETCH_TIMEOUT_SECONDS, USER_AGENT
from curation.errors import FetchError


@dataclass
class FetchResult:
    url: str
    body: str
    content_type: str = ""
    status: int = 200
    content: bytes = b""

    @property
    def markup(self) -> Union[bytes, str]:
        """Undecoded bytes when available, so parsers can honor the document's own charset."""
        return self.content or self.body


Fetcher = Callable[..., FetchResult]


def fetch(url: str, timeout: float = FETCH_TIMEOUT_SECONDS) -> FetchResult:
    """Fetch a URL and return its body.

    Raises:
        FetchError: on connection errors, timeouts and HTTP error statuses.
    """
    try:
        resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(url, str(e)) from e

    return FetchResult(
        url=resp.url or url,
        body=resp.text,
        content_type=resp.headers.get("Content-Type", ""),
        status=resp.status_code,
        content=resp.content,
    )
