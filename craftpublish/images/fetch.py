"""HTTP fetching of remotely referenced product images."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List

import requests
from requests import Response, Session

from ..errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 15.0
_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def new_session() -> Session:
    """Return a requests session configured with the default headers."""
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": _USER_AGENT,
            "Accept": "image/*,*/*;q=0.8",
        }
    )
    return session


class ThreadLocalSession:
    """Session-like wrapper that gives every calling thread its own session.

    Sessions are built lazily by *factory*; :meth:`close` closes all of them.
    """

    def __init__(self, factory: Callable[[], Session] = new_session) -> None:
        self._factory = factory
        self._local = threading.local()
        self._lock = threading.Lock()
        self._sessions: List[Session] = []

    def session(self) -> Session:
        """Return the calling thread's session, creating it on first use."""
        current = getattr(self._local, "session", None)
        if current is None:
            current = self._factory()
            self._local.session = current
            with self._lock:
                self._sessions.append(current)
        return current

    def request(self, method: str, url: str, **kwargs: Any) -> Response:
        return self.session().request(method, url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> Response:
        return self.session().get(url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Response:
        return self.session().post(url, **kwargs)

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()


def fetch_image_bytes(
    url: str,
    http: Session,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    index: int | None = None,
) -> bytes:
    """Download *url* with a single GET and return the response body.

    Any transport failure or non-2xx status raises :class:`FetchError`; no
    retry is attempted.
    """
    logger.info("Downloading image from %s", url)
    try:
        response = http.get(url, timeout=timeout, allow_redirects=True)
    except requests.Timeout as exc:
        raise FetchError(
            f"Timed out after {timeout:.0f}s fetching {url}", index=index
        ) from exc
    except requests.RequestException as exc:
        raise FetchError(f"Request error fetching {url}: {exc}", index=index) from exc

    if not 200 <= response.status_code < 300:
        raise FetchError(
            f"Server returned status {response.status_code} for {url}",
            index=index,
            status_code=response.status_code,
        )
    data = response.content
    if not data:
        raise FetchError(f"Empty response body from {url}", index=index)
    return data
