#!/usr/bin/env python3
"""
Diagnostic tool to see what the extractors find on a category listing page.
"""

import argparse
import asyncio
from typing import Dict

from bs4 import BeautifulSoup

from http_fetcher import FetchError, RetryingFetcher
from page_extractor import extract_category_image_urls, extract_product_links
from scraper_config import DEFAULT_BASE_URL
from scraper_logger import ScraperLogger
from url_normalizer import to_absolute

LINK_PATTERNS = ('details/', 'prod/', 'cat/', '/images/produits/')


def summarize_listing(html, base_url: str) -> Dict:
    """Count what a listing page exposes to the extractors."""
    soup = BeautifulSoup(html or "", 'lxml')
    all_links = soup.find_all('a', href=True)

    patterns = {pattern: 0 for pattern in LINK_PATTERNS}
    for link in all_links:
        href = link.get('href', '').lower()
        for pattern in patterns:
            if pattern in href:
                patterns[pattern] += 1

    title = soup.title.string.strip() if soup.title and soup.title.string else None
    return {
        'title': title,
        'total_links': len(all_links),
        'cards': len(soup.select('.single-product-item')),
        'link_patterns': patterns,
        'thumbnails': extract_category_image_urls(html, base_url).to_list(),
        'product_links': extract_product_links(html, base_url).to_list(),
    }


async def diagnose_category(fetcher: RetryingFetcher, url: str, base_url: str):
    """Fetch one listing page and print what was found."""
    print(f"\n{'='*60}")
    print(f"Diagnosing: {url}")
    print('='*60)

    try:
        page = await fetcher.fetch(url)
    except FetchError as e:
        print(f"\nError: {e}")
        return

    summary = summarize_listing(page.body, base_url)
    print(f"\nStatus: {page.status} (final URL: {page.url})")
    print(f"Page title: {summary['title'] or 'No title'}")
    print(f"Content length: {len(page.body)} characters")
    print(f"Product cards: {summary['cards']}")
    print(f"Total links found: {summary['total_links']}")

    print("\nLink patterns found:")
    for pattern, count in summary['link_patterns'].items():
        if count > 0:
            print(f"  {pattern}: {count} links")

    print(f"\nThumbnails: {len(summary['thumbnails'])}")
    print(f"Product links: {len(summary['product_links'])}")
    for i, link in enumerate(summary['product_links'][:20], 1):
        print(f"  {i}. {link}")


async def main():
    parser = argparse.ArgumentParser(description='Inspect category listing pages')
    parser.add_argument('paths', nargs='+', metavar='URL',
                        help='Listing page URLs or paths relative to --base-url')
    parser.add_argument('--base-url', default=DEFAULT_BASE_URL, metavar='URL')
    parser.add_argument('--log-dir', default='logs', metavar='DIR')
    args = parser.parse_args()

    logger = ScraperLogger(args.log_dir)
    async with RetryingFetcher(logger) as fetcher:
        for path in args.paths:
            url = to_absolute(path, args.base_url)
            if not url:
                print(f"Skipping unparseable URL: {path}")
                continue
            await diagnose_category(fetcher, url, args.base_url)
            print("\n")


if __name__ == "__main__":
    asyncio.run(main())
