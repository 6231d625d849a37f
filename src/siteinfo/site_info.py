# ============================================
# file: src/siteinfo/site_info.py
# ============================================
from __future__ import annotations

import logging
from typing import Optional

from siteinfo.model import LoaderSettings, Page, SiteMetadata
from siteinfo.services.metadata_extract_service import MetadataExtractService
from siteinfo.services.page_loader_service import PageLoaderService

logger = logging.getLogger(__name__)


class SiteInfo:
    """
    Retrieves title, description, keywords, icon and preview image of a web page.

    The page is fetched and parsed once, on construction. All accessors are pure
    lookups on that document and return an empty string when nothing is found,
    including when the fetch itself failed.
    """

    def __init__(
            self,
            url: str,
            settings: Optional[LoaderSettings] = None,
            loader: Optional[PageLoaderService] = None,
            page: Optional[Page] = None,
    ):
        """A `page` that was already fetched skips the network step entirely."""
        self.url = url
        self.loader = loader
        if page is None:
            self.loader = loader or PageLoaderService(settings)
            page = self.loader.fetch(url)
        self.page: Page = page
        self._extractor = MetadataExtractService(PageLoaderService.parse(page.content), url)

    @classmethod
    def from_html(cls, html: str | bytes, url: str) -> "SiteInfo":
        """Builds an instance around markup that was already fetched; no network access."""
        content = html.encode("utf-8") if isinstance(html, str) else html
        return cls(url, page=Page(url=url, final_url=url, content=content))

    @property
    def document(self):
        return self._extractor.document

    def get_title(self) -> str:
        return self._extractor.get_title()

    def get_description(self) -> str:
        return self._extractor.get_description()

    def get_keywords(self) -> str:
        return self._extractor.get_keywords()

    def get_icon(self) -> str:
        return self._extractor.get_icon()

    def get_image(self) -> str:
        return self._extractor.get_image()

    def get_tag_value(self, tag: str, match_attr: str, match_value: str, result_attr: str) -> str:
        return self._extractor.get_tag_value(tag, match_attr, match_value, result_attr)

    def extract(self) -> SiteMetadata:
        metadata = self._extractor.extract()
        if self.page.error:
            metadata.error = self.page.error
        return metadata

    def __repr__(self) -> str:
        return f"SiteInfo(url={self.url!r}, status={self.page.status_code})"
