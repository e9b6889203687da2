"""
Image and product link extraction from listing and product pages.

All functions are pure: they parse the HTML they are given, never perform
I/O, and return an empty set when nothing matches.
"""

import re
from typing import Iterable, Optional

from bs4 import BeautifulSoup

from url_normalizer import OrderedUrlSet, is_image_url, to_absolute

LISTING_IMAGE_SELECTOR = ".single-product-item .img-holder img"
LISTING_LINK_SELECTOR = (
    ".single-product-item .img-holder a, .single-product-item .product-title a"
)
PRODUCT_IMAGE_SELECTOR = ".img-holder img, .thumb-image img, .thumb-image"

# Product cards link either to details/<slug> or prod/<slug> depending on the view
PRODUCT_LINK_RE = re.compile(r'details/|prod/', re.IGNORECASE)
PRODUCT_IMAGE_PATH_RE = re.compile(r'/images/produits/', re.IGNORECASE)

# Precedence for image holders: plain src, then lazy-load, then zoom source
IMAGE_SOURCE_ATTRIBUTES = ('src', 'data-src', 'data-imagezoom')


def _parse(html) -> BeautifulSoup:
    return BeautifulSoup(html or "", 'lxml')


def _first_attribute(element, attributes: Iterable[str]) -> Optional[str]:
    for attribute in attributes:
        value = element.get(attribute)
        if value:
            return value
    return None


def extract_category_image_urls(html, base_url: str) -> OrderedUrlSet:
    """Collect thumbnail images shown on a category listing page.

    Args:
        html: Raw listing page HTML
        base_url: Site origin used to resolve relative references

    Returns:
        Deduplicated absolute image URLs in document order
    """
    soup = _parse(html)
    urls = OrderedUrlSet()

    for img in soup.select(LISTING_IMAGE_SELECTOR):
        absolute = to_absolute(img.get('src'), base_url)
        if absolute and is_image_url(absolute):
            urls.add(absolute)

    return urls


def extract_product_links(html, base_url: str) -> OrderedUrlSet:
    """Collect product detail page links from listing cards.

    Both the image-wrapper anchor and the title anchor of each card are read;
    only hrefs that look like product detail pages are kept.

    Args:
        html: Raw listing page HTML
        base_url: Site origin used to resolve relative references

    Returns:
        Deduplicated absolute product URLs in document order
    """
    soup = _parse(html)
    links = OrderedUrlSet()

    for anchor in soup.select(LISTING_LINK_SELECTOR):
        href = anchor.get('href')
        if not href or not PRODUCT_LINK_RE.search(href):
            continue
        absolute = to_absolute(href, base_url)
        if absolute:
            links.add(absolute)

    return links


def extract_product_images(html, base_url: str) -> OrderedUrlSet:
    """Collect the images of a product detail page.

    Product markup is inconsistent, so two passes always run and their results
    are unioned: known image holders / thumbnail strips (reading lazy-load and
    zoom attributes as fallbacks), then every ``<img>`` stored under the
    product image directory. The second pass can also pick up unrelated
    images kept under the same directory.

    Args:
        html: Raw product page HTML
        base_url: Site origin used to resolve relative references

    Returns:
        Deduplicated absolute image URLs in document order
    """
    soup = _parse(html)
    urls = OrderedUrlSet()

    for element in soup.select(PRODUCT_IMAGE_SELECTOR):
        candidate = _first_attribute(element, IMAGE_SOURCE_ATTRIBUTES)
        absolute = to_absolute(candidate, base_url)
        if absolute and is_image_url(absolute):
            urls.add(absolute)

    for img in soup.find_all('img'):
        absolute = to_absolute(img.get('src'), base_url)
        if absolute and is_image_url(absolute) and PRODUCT_IMAGE_PATH_RE.search(absolute):
            urls.add(absolute)

    return urls
