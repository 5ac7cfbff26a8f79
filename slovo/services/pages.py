"""Load an external web page so its text can go through the content pipeline.

Stylesheets are inlined and relative image sources made absolute, so the
page still renders once it is served from another origin. Scripts are
dropped.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from slovo.config import DEFAULT_USER_AGENT
from slovo.errors import InvalidPageUrl, PageError


LOGGER = logging.getLogger(__name__)


def is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and (bool(parsed.netloc) or parsed.scheme == "data")


class PageLoader:
    def __init__(
        self,
        *,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", user_agent)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def _get(self, url: str) -> str:
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PageError(url, str(exc)) from exc
        if response.status_code != 200:
            raise PageError(url, f"HTTP {response.status_code}")
        return response.text

    def load(self, url: str) -> str:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidPageUrl(url)

        LOGGER.info("Loading page %s", url)
        soup = BeautifulSoup(self._get(url), "html.parser")

        for link in soup.find_all("link", rel="stylesheet"):
            href = link.get("href")
            if not href:
                continue
            try:
                css = self._get(urljoin(url, href))
            except PageError as exc:
                LOGGER.warning("Skipping stylesheet: %s", exc)
                continue
            style = soup.new_tag("style")
            style.string = css
            link.replace_with(style)

        for image in soup.find_all("img", src=True):
            if not is_absolute_url(image["src"]):
                image["src"] = urljoin(url, image["src"])

        for script in soup.find_all("script"):
            script.decompose()

        return str(soup)
