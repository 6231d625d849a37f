# src/siteinfo/exceptions.py


class SiteInfoError(Exception):
    """Base class for errors raised to SiteInfo callers."""


class InvalidUrlError(SiteInfoError, ValueError):
    """
    Raised when a page URL cannot be decomposed into scheme, host and port,
    so a relative attribute value cannot be turned into an absolute URL.
    """

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL {url!r}: {reason}")
