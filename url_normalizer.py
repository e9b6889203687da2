"""
URL normalization and filename helpers for the catalog scraper.

Resolves the relative references found in listing and product pages against
the site origin, decides whether a URL points to a downloadable image, and
turns category names and URL basenames into filesystem-safe names.
"""

import os
import re
from typing import Iterable, Iterator, List, Optional
from urllib.parse import urljoin, urlsplit


IMAGE_EXTENSION_RE = re.compile(r'\.(jpe?g|png|webp)$', re.IGNORECASE)
LEADING_RELATIVE_RE = re.compile(r'^\.?/')

# Characters rejected by common filesystems, plus C0/C1 control characters
UNSAFE_FILENAME_CHARS_RE = re.compile(r'[/\?<>\\:\*\|"\x00-\x1f\x80-\x9f]')
RESERVED_NAME_RE = re.compile(r'^\.+$')
WINDOWS_RESERVED_RE = re.compile(
    r'^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$', re.IGNORECASE
)
TRAILING_DOTS_RE = re.compile(r'[\. ]+$')
WHITESPACE_RE = re.compile(r'\s+')

DEFAULT_EXTENSION = '.jpg'

# 255-byte filesystem limit minus room for the ".part" download suffix
MAX_FILENAME_BYTES = 250
MAX_KEPT_EXTENSION = 16


def to_absolute(maybe_relative: Optional[str], base_origin: str) -> Optional[str]:
    """Resolve a reference found in a page against the site origin.

    Args:
        maybe_relative: Raw ``src``/``href`` attribute value
        base_origin: Origin of the site, e.g. ``https://www.botech.ma/``

    Returns:
        Absolute URL, or None for empty or unparseable input
    """
    if not maybe_relative:
        return None

    url = maybe_relative.strip()
    if not url:
        return None

    if url.startswith('http://') or url.startswith('https://'):
        return url

    try:
        if url.startswith('/'):
            return urljoin(base_origin, url)

        # Raises ValueError on malformed netloc (e.g. unbalanced brackets)
        origin = urlsplit(base_origin)
        if origin.scheme and origin.netloc:
            root = f"{origin.scheme}://{origin.netloc}/"
        else:
            root = base_origin if base_origin.endswith('/') else base_origin + '/'
        absolute = root + LEADING_RELATIVE_RE.sub('', url)
        urlsplit(absolute)
        return absolute
    except ValueError:
        return None


def _strip_query(url: str) -> str:
    return url.split('?', 1)[0]


def is_image_url(url: str) -> bool:
    """Check whether a URL's path ends in a supported image extension."""
    return bool(IMAGE_EXTENSION_RE.search(_strip_query(url)))


def extension_of(url: str) -> str:
    """Return the image extension of a URL, defaulting to ``.jpg``."""
    match = IMAGE_EXTENSION_RE.search(_strip_query(url))
    return match.group(0).lower() if match else DEFAULT_EXTENSION


def url_basename(url: str) -> str:
    """Return the last path segment of a URL, ignoring the query string."""
    return _strip_query(url).rstrip('/').rsplit('/', 1)[-1]


def safe_file_name(name: str, max_length: int = 150,
                   max_bytes: int = MAX_FILENAME_BYTES) -> str:
    """Convert an arbitrary name into a filesystem-safe file name.

    Unsafe characters are removed, runs of whitespace become underscores and
    the result is truncated to ``max_length`` characters and ``max_bytes``
    UTF-8 bytes. Truncation shortens the stem and keeps the extension. Names
    that reduce to a reserved name come back empty.
    """
    cleaned = UNSAFE_FILENAME_CHARS_RE.sub('', name)
    cleaned = TRAILING_DOTS_RE.sub('', cleaned)
    if RESERVED_NAME_RE.match(cleaned) or WINDOWS_RESERVED_RE.match(cleaned):
        return ''
    cleaned = WHITESPACE_RE.sub('_', cleaned.strip())
    if len(cleaned) <= max_length and len(cleaned.encode('utf-8')) <= max_bytes:
        return cleaned

    stem, ext = os.path.splitext(cleaned)
    if len(ext) > MAX_KEPT_EXTENSION:
        stem, ext = cleaned, ''
    stem_chars = max(max_length - len(ext), 0)
    stem_bytes = max(max_bytes - len(ext.encode('utf-8')), 0)
    stem = stem[:stem_chars].encode('utf-8')[:stem_bytes].decode('utf-8', 'ignore')
    return stem + ext


class OrderedUrlSet:
    """Insertion-ordered collection of unique URLs."""

    def __init__(self, urls: Optional[Iterable[str]] = None):
        self._urls = {}
        if urls:
            self.update(urls)

    def add(self, url: str) -> bool:
        """Add a URL; returns False if it was already present."""
        if url in self._urls:
            return False
        self._urls[url] = None
        return True

    def update(self, urls: Iterable[str]):
        for url in urls:
            self.add(url)

    def to_list(self) -> List[str]:
        return list(self._urls)

    def __contains__(self, url) -> bool:
        return url in self._urls

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)

    def __repr__(self) -> str:
        return f"OrderedUrlSet({self.to_list()!r})"
