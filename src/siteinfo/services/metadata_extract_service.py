from __future__ import annotations

import logging
from typing import Iterable, Tuple

from bs4 import BeautifulSoup

from siteinfo.model import FieldQuery, SiteMetadata
from siteinfo.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)


def _q(tag: str, match_attr: str, match_value: str, result_attr: str) -> FieldQuery:
    return FieldQuery(tag=tag, match_attr=match_attr, match_value=match_value, result_attr=result_attr)


# Fallback chains, highest priority first.
TITLE_QUERIES: Tuple[FieldQuery, ...] = (
    _q("meta", "property", "og:title", "content"),
    _q("meta", "property", "twitter:title", "content"),
)

DESCRIPTION_QUERIES: Tuple[FieldQuery, ...] = (
    _q("meta", "name", "description", "content"),
    _q("meta", "property", "og:description", "content"),
    _q("meta", "property", "twitter:description", "content"),
)

KEYWORDS_QUERIES: Tuple[FieldQuery, ...] = (
    _q("meta", "name", "keywords", "content"),
)

ICON_QUERIES: Tuple[FieldQuery, ...] = (
    _q("link", "rel", "shortcut icon", "href"),
    _q("link", "rel", "icon", "href"),
)

# Higher resolutions first; Apple touch icons are matched on their sizes attribute.
IMAGE_QUERIES: Tuple[FieldQuery, ...] = (
    _q("meta", "property", "og:image", "content"),
    _q("meta", "name", "msapplication-TileImage", "content"),
    _q("link", "rel", "fluid-icon", "href"),
    _q("meta", "name", "twitter:image", "content"),
    *(_q("link", "sizes", size, "href")
      for size in ("152x152", "144x144", "120x120", "114x114", "76x76", "72x72", "57x57")),
)


class MetadataExtractService:
    """
    Read-only lookups over a parsed page.
    Every accessor walks its chain of FieldQuery lookups and returns the first
    non-empty value, or an empty string when nothing matches.
    """

    def __init__(self, document: BeautifulSoup, page_url: str):
        self.document = document
        self.page_url = page_url

    # -------- Generic primitive --------

    def get_tag_value(self, tag: str, match_attr: str, match_value: str, result_attr: str) -> str:
        """
        Returns result_attr of the first <tag> whose match_attr equals match_value
        exactly. Only that first match is consulted: if it lacks result_attr the
        answer is an empty string.
        """
        # html.parser lowercases tag and attribute names; values keep their case.
        for node in self.document.find_all(tag.lower()):
            if node.get(match_attr.lower()) == match_value:
                return node.get(result_attr.lower()) or ""
        return ""

    def run_query(self, query: FieldQuery) -> str:
        return self.get_tag_value(query.tag, query.match_attr, query.match_value, query.result_attr)

    def first_match(self, queries: Iterable[FieldQuery]) -> str:
        for query in queries:
            value = self.run_query(query)
            if value:
                return value
        return ""

    # -------- Field accessors --------

    def get_title(self) -> str:
        el = self.document.find("title")
        # Text is taken as-is; a whitespace-only title still counts as set.
        title = el.get_text() if el else ""
        return title or self.first_match(TITLE_QUERIES)

    def get_description(self) -> str:
        return self.first_match(DESCRIPTION_QUERIES)

    def get_keywords(self) -> str:
        return self.first_match(KEYWORDS_QUERIES)

    def get_icon(self) -> str:
        return UrlUtils.to_absolute(self.first_match(ICON_QUERIES), self.page_url)

    def get_image(self) -> str:
        image = self.first_match(IMAGE_QUERIES)
        if not image:
            logger.debug("No image tag on %s, falling back to the icon.", self.page_url)
            image = self.get_icon()
        return UrlUtils.to_absolute(image, self.page_url)

    def extract(self) -> SiteMetadata:
        return SiteMetadata(
            url=self.page_url,
            title=self.get_title(),
            description=self.get_description(),
            keywords=self.get_keywords(),
            icon=self.get_icon(),
            image=self.get_image(),
        )
