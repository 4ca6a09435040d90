"""
WordPress REST content source.

Fetches every post from a `/wp-json/wp/v2/posts` style endpoint, page by
page. Pagination ends on a short or empty page, or on the HTTP 400 that
WordPress returns once `page` runs past the last page.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx

from wp_semantic_search.core.errors import ContentSourceError

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 100


class WordPressClient:
    """
    Paginated reader for WordPress posts.

    The HTTP client is injectable so tests can use httpx.MockTransport.
    """

    def __init__(
        self,
        posts_url: str,
        http: httpx.Client | None = None,
        page_delay_s: float = 0.1,
        timeout_s: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.posts_url = posts_url
        self._http = http or httpx.Client(timeout=timeout_s, follow_redirects=True)
        self._page_delay_s = page_delay_s
        self._sleep = sleep

    @property
    def per_page(self) -> int:
        """per_page from the configured URL, or the WordPress maximum."""
        configured = httpx.URL(self.posts_url).params.get("per_page")
        try:
            return int(configured) if configured else DEFAULT_PER_PAGE
        except ValueError:
            return DEFAULT_PER_PAGE

    def page_url(self, page: int) -> httpx.URL:
        url = httpx.URL(self.posts_url)
        params = url.params.set("page", str(page))
        if "per_page" not in url.params:
            params = params.set("per_page", str(DEFAULT_PER_PAGE))
        return url.copy_with(params=params)

    def fetch_page(self, page: int) -> list[dict[str, Any]] | None:
        """
        Fetch one page of posts.

        Returns None when WordPress reports the page is out of range.
        """
        url = self.page_url(page)
        logger.info(f"Fetching page {page}...")
        try:
            response = self._http.get(url)
        except httpx.HTTPError as e:
            raise ContentSourceError(f"Failed to fetch posts page {page}: {e}") from e

        if response.status_code == 400 and page > 1:
            return None
        if response.is_error:
            raise ContentSourceError(
                f"Failed to fetch posts: {response.status_code} {response.reason_phrase}"
            )

        try:
            posts = response.json()
        except ValueError as e:
            raise ContentSourceError(f"Page {page} is not valid JSON: {e}") from e
        if not isinstance(posts, list):
            raise ContentSourceError(f"Page {page} did not return a list of posts")
        return posts

    def fetch_all(self) -> list[dict[str, Any]]:
        """Fetch all posts across pages."""
        per_page = self.per_page
        all_posts: list[dict[str, Any]] = []
        page = 1

        while True:
            posts = self.fetch_page(page)
            if not posts:
                break
            all_posts.extend(posts)
            logger.info(f"Fetched {len(posts)} posts from page {page}")
            if len(posts) < per_page:
                break
            page += 1
            self._sleep(self._page_delay_s)

        logger.info(f"Total posts fetched: {len(all_posts)}")
        return all_posts

    def close(self) -> None:
        self._http.close()
