# src/siteinfo/utils/url_utils.py
import logging
from urllib.parse import urlsplit

from siteinfo.exceptions import InvalidUrlError

logger = logging.getLogger(__name__)


class UrlUtils:
    """A collection of static methods for URL parsing and manipulation."""

    @staticmethod
    def get_base_url(page_url: str) -> str:
        """
        Rebuilds 'scheme://[user[:pass]@]host[:port]' from a page URL.
        Raises InvalidUrlError when the scheme, host or port cannot be read.
        """
        try:
            parts = urlsplit(page_url)
            port = parts.port
        except ValueError as e:
            raise InvalidUrlError(page_url, str(e)) from e

        if not parts.scheme:
            raise InvalidUrlError(page_url, "missing scheme")
        if not parts.hostname:
            raise InvalidUrlError(page_url, "missing host")

        host = parts.hostname
        if ":" in host:
            # IPv6 literal
            host = f"[{host}]"

        prefix = f"{parts.scheme}://"
        if parts.username or parts.password:
            prefix += parts.username or ""
            if parts.password:
                prefix += f":{parts.password}"
            prefix += "@"
        prefix += host
        if port is not None:
            prefix += f":{port}"
        return prefix

    @staticmethod
    def to_absolute(url: str, page_url: str) -> str:
        """
        Turns an attribute value into an absolute URL using the page's origin.

        Anything starting with the literal 'http' is returned untouched. Any other
        value is appended to the origin, with a '/' inserted only when the value
        does not start with one. Paths are therefore resolved against the host
        root, and '//host/x' values are not treated as protocol-relative.
        """
        if not url:
            return ""

        if url.startswith("http"):
            return url

        prefix = UrlUtils.get_base_url(page_url)
        if not url.startswith("/"):
            prefix += "/"
        absolute = prefix + url
        logger.debug("Resolved relative URL %r to %r", url, absolute)
        return absolute
