#!/usr/bin/env python3
"""
Catalog Image Scraper (Async Version)

Crawls category listing pages, follows every product card to its detail page,
and downloads the thumbnails and product images into one folder per category.
Product fetches and image downloads each run through their own bounded pool;
categories are processed one after another.
"""

import argparse
import asyncio
import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from bounded_pipeline import run_bounded
from http_fetcher import ASSET_PROFILE, PAGE_PROFILE, FetchError, RetryingFetcher
from page_extractor import (
    extract_category_image_urls,
    extract_product_images,
    extract_product_links,
)
from scraper_config import (
    DEFAULT_BASE_URL,
    DEFAULT_CATEGORIES,
    DEFAULT_OUTPUT_DIR,
    CategorySpec,
    ScraperConfig,
    load_categories,
    select_categories,
)
from scraper_logger import ScraperLogger
from url_normalizer import (
    OrderedUrlSet,
    extension_of,
    is_image_url,
    safe_file_name,
    to_absolute,
    url_basename,
)

DOWNLOADED = "downloaded"
SKIPPED = "skipped"
FAILED = "failed"


# ============================================================================
# Data Model
# ============================================================================

@dataclass
class DownloadTarget:
    """Where a single image URL will be stored."""

    source_url: str
    destination: Path


@dataclass
class CategoryResult:
    """Outcome counters for one crawled category."""

    name: str
    url: str
    product_pages: int = 0
    images_found: int = 0
    downloaded: int = 0
    skipped: int = 0
    failed: int = 0


class CategoryAbortError(Exception):
    """Raised when a category's listing page cannot be fetched."""

    def __init__(self, category: str, url: str, reason: str):
        self.category = category
        self.url = url
        super().__init__(f"Listing page for '{category}' unavailable: {reason}")


# ============================================================================
# Category Crawl Orchestrator
# ============================================================================

class CategoryCrawler:
    """Runs the listing -> products -> images -> downloads flow for a category."""

    def __init__(self, fetcher, config: ScraperConfig, logger: ScraperLogger):
        """Initialize the crawler.

        Args:
            fetcher: Object exposing ``async fetch(url, profile)``
                (normally a RetryingFetcher)
            config: Run configuration
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.config = config
        self.logger = logger
        self.page_profile = dataclasses.replace(PAGE_PROFILE, timeout=config.page_timeout)
        self.asset_profile = dataclasses.replace(ASSET_PROFILE, timeout=config.asset_timeout)

    def category_folder(self, category: CategorySpec) -> Path:
        return self.config.output_dir / (safe_file_name(category.display_name) or "category")

    async def crawl(self, category: CategorySpec) -> CategoryResult:
        """Crawl one category and download its images.

        Args:
            category: Category to crawl

        Returns:
            CategoryResult with discovery and download counters

        Raises:
            CategoryAbortError: If the listing page could not be fetched
        """
        folder = self.category_folder(category)
        folder.mkdir(parents=True, exist_ok=True)

        category_url = to_absolute(category.relative_path, self.config.base_url)
        if not category_url:
            raise CategoryAbortError(
                category.display_name, category.relative_path, "invalid category path"
            )

        self.logger.info(f"\n==> Category: {category.display_name}")
        self.logger.info(category_url)

        image_urls, product_links = await self.collect_image_urls(category, category_url)
        result = CategoryResult(
            name=category.display_name,
            url=category_url,
            product_pages=len(product_links),
            images_found=len(image_urls),
        )
        self.logger.info(
            f"Found {len(image_urls)} image(s) in \"{category.display_name}\" "
            f"({len(product_links)} product page(s))"
        )

        targets = self.plan_downloads(category, image_urls, folder)
        outcomes = await self.download_images(category, targets)
        result.downloaded = outcomes.count(DOWNLOADED)
        result.skipped = outcomes.count(SKIPPED)
        result.failed = outcomes.count(FAILED)

        self.logger.info(
            f"Category \"{category.display_name}\": {result.downloaded} downloaded, "
            f"{result.skipped} already present, {result.failed} failed"
        )
        return result

    async def collect_image_urls(self, category: CategorySpec,
                                 category_url: str) -> Tuple[OrderedUrlSet, OrderedUrlSet]:
        """Fetch the listing and its product pages and gather every image URL.

        Args:
            category: Category being crawled (for error reporting)
            category_url: Absolute URL of the listing page

        Returns:
            Tuple of (deduplicated image URLs, product links)

        Raises:
            CategoryAbortError: If the listing page could not be fetched
        """
        try:
            listing = await self.fetcher.fetch(category_url, self.page_profile)
        except FetchError as e:
            raise CategoryAbortError(category.display_name, category_url, str(e)) from e

        base_url = self.config.base_url
        thumbnails = extract_category_image_urls(listing.body, base_url)
        product_links = extract_product_links(listing.body, base_url)
        self.logger.debug(
            f"{len(thumbnails)} thumbnail(s), {len(product_links)} product link(s) "
            f"on {category_url}"
        )

        async def fetch_product(url: str) -> str:
            try:
                page = await self.fetcher.fetch(url, self.page_profile)
            except FetchError as e:
                self.logger.log_error(
                    category.display_name, "ProductFetchError", str(e), url
                )
                return ""
            return page.body

        product_bodies = await run_bounded(
            product_links.to_list(), self.config.fetch_concurrency, fetch_product
        )

        image_urls = OrderedUrlSet(thumbnails)
        for body in product_bodies:
            if body:
                image_urls.update(extract_product_images(body, base_url))

        return image_urls, product_links

    def plan_downloads(self, category: CategorySpec, image_urls,
                       folder: Path) -> List[DownloadTarget]:
        """Assign a distinct destination path to every image URL.

        The URL basename is kept when it still ends in an image extension after
        sanitizing and no earlier URL claimed it; otherwise a
        ``<category>_<NNN><ext>`` name is generated.
        """
        category_slug = safe_file_name(category.display_name) or "category"
        claimed = set()
        sequence = 0
        targets = []

        for url in image_urls:
            file_name = safe_file_name(url_basename(url))
            if not file_name or not is_image_url(file_name) or file_name in claimed:
                while True:
                    sequence += 1
                    file_name = f"{category_slug}_{sequence:03d}{extension_of(url)}"
                    if file_name not in claimed:
                        break
            claimed.add(file_name)
            targets.append(DownloadTarget(source_url=url, destination=folder / file_name))

        return targets

    async def download_images(self, category: CategorySpec,
                              targets: List[DownloadTarget]) -> List[str]:
        """Download every target not already on disk.

        Returns:
            One of DOWNLOADED / SKIPPED / FAILED per target, in target order
        """
        async def download(target: DownloadTarget) -> str:
            try:
                if target.destination.exists():
                    self.logger.debug(f"Already present: {target.destination}")
                    return SKIPPED
                asset = await self.fetcher.fetch(target.source_url, self.asset_profile)
                self._write_atomically(target.destination, asset.body)
            except (FetchError, OSError) as e:
                self.logger.log_error(
                    category.display_name,
                    "DownloadError",
                    f"{target.source_url} -> {target.destination}: {e}",
                    target.source_url,
                )
                return FAILED

            self.logger.info(f"  Downloaded {target.source_url} -> {target.destination}")
            return DOWNLOADED

        return await run_bounded(targets, self.config.download_concurrency, download)

    @staticmethod
    def _write_atomically(destination: Path, data: bytes):
        # Destination only appears once fully written
        partial = destination.with_name(destination.name + ".part")
        partial.write_bytes(data)
        partial.replace(destination)


# ============================================================================
# Run Driver
# ============================================================================

class AsyncCatalogScraper:
    """Crawls every configured category in turn and reports a summary."""

    def __init__(self, config: ScraperConfig, category_filter: Optional[str] = None,
                 logger: Optional[ScraperLogger] = None):
        """Initialize the scraper.

        Args:
            config: Run configuration
            category_filter: Only crawl the category with this name
            logger: Logger instance (created from ``config.log_dir`` if omitted)
        """
        self.config = config
        self.category_filter = category_filter
        self.logger = logger or ScraperLogger(str(config.log_dir))
        self.categories = select_categories(config.categories, category_filter)
        self.results: List[CategoryResult] = []
        self.stats = {
            'categories_attempted': 0,
            'categories_completed': 0,
            'categories_failed': 0,
            'product_pages_found': 0,
            'images_found': 0,
            'images_downloaded': 0,
            'images_skipped': 0,
            'downloads_failed': 0,
        }

    async def run(self) -> List[CategoryResult]:
        """Crawl all categories with a shared HTTP session."""
        self.logger.info("=" * 60)
        self.logger.info("Catalog Image Scraper (Async)")
        self.logger.info("=" * 60)

        if not self.categories:
            if self.category_filter:
                self.logger.info(f"No category found matching '{self.category_filter}'. Exiting.")
            else:
                self.logger.info("No categories to process. Exiting.")
            return []

        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Saving into: {self.config.output_dir.absolute()}")

        async with RetryingFetcher(
            self.logger,
            max_retries=self.config.max_retries,
            retry_base_delay=self.config.retry_base_delay,
            user_agent=self.config.user_agent,
            connection_limit=max(self.config.fetch_concurrency,
                                 self.config.download_concurrency),
        ) as fetcher:
            results = await self.crawl_all(fetcher)

        self._print_summary()
        return results

    async def crawl_all(self, fetcher) -> List[CategoryResult]:
        """Crawl the categories sequentially, isolating per-category failures.

        Args:
            fetcher: Object exposing ``async fetch(url, profile)``

        Returns:
            Results of the categories that completed
        """
        crawler = CategoryCrawler(fetcher, self.config, self.logger)

        for idx, category in enumerate(self.categories, 1):
            self.logger.info(f"\n[{idx}/{len(self.categories)}] {category.display_name}")
            self.stats['categories_attempted'] += 1

            try:
                result = await crawler.crawl(category)
            except CategoryAbortError as e:
                self.logger.log_error(category.display_name, "CategoryAborted", str(e), e.url)
                self.stats['categories_failed'] += 1
                continue
            except Exception as e:
                self.logger.log_error(
                    category.display_name,
                    "CategoryProcessingError",
                    f"Failed to process category: {e}",
                    category.relative_path,
                )
                self.stats['categories_failed'] += 1
                continue

            self.results.append(result)
            self.stats['categories_completed'] += 1
            self.stats['product_pages_found'] += result.product_pages
            self.stats['images_found'] += result.images_found
            self.stats['images_downloaded'] += result.downloaded
            self.stats['images_skipped'] += result.skipped
            self.stats['downloads_failed'] += result.failed

        return self.results

    def _print_summary(self):
        """Print final summary statistics."""
        self.logger.info("\n" + "=" * 60)
        self.logger.info("SCRAPING COMPLETE")
        self.logger.info("=" * 60)
        self.logger.info(
            f"Categories: {self.stats['categories_completed']} completed, "
            f"{self.stats['categories_failed']} failed "
            f"(of {self.stats['categories_attempted']})"
        )
        self.logger.info(f"Product pages found: {self.stats['product_pages_found']}")
        self.logger.info(f"Images found: {self.stats['images_found']}")
        self.logger.info(f"Images downloaded: {self.stats['images_downloaded']}")
        self.logger.info(f"Already present: {self.stats['images_skipped']}")
        self.logger.info(f"Failed downloads: {self.stats['downloads_failed']}")
        self.logger.info(f"\nOutput directory: {self.config.output_dir.absolute()}")
        self.logger.info(f"Error log: {self.logger.error_log_path}")


# ============================================================================
# Main Entry Point
# ============================================================================

def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Catalog Image Scraper - download category and product images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Crawl every built-in category
  python catalog_scraper_async.py

  # Crawl a single category
  python catalog_scraper_async.py --category "Berceaux"

  # Use a custom category table and output folder
  python catalog_scraper_async.py --categories categories.json --output images/

  # Be gentler with the site
  python catalog_scraper_async.py --fetch-concurrency 2 --download-concurrency 2
        '''
    )

    parser.add_argument(
        '--output',
        type=str,
        default=DEFAULT_OUTPUT_DIR,
        metavar='DIR',
        help=f'Output directory for images (default: {DEFAULT_OUTPUT_DIR}/)'
    )

    parser.add_argument(
        '--base-url',
        type=str,
        default=DEFAULT_BASE_URL,
        metavar='URL',
        help=f'Site origin used to resolve relative links (default: {DEFAULT_BASE_URL})'
    )

    parser.add_argument(
        '--categories',
        type=str,
        default=None,
        metavar='FILE',
        help='JSON file mapping category name to relative path (default: built-in table)'
    )

    parser.add_argument(
        '--category',
        type=str,
        default=None,
        metavar='NAME',
        help='Process only the specified category by name (default: process all)'
    )

    parser.add_argument(
        '--fetch-concurrency',
        type=positive_int,
        default=4,
        metavar='N',
        help='Maximum product pages fetched concurrently (default: 4)'
    )

    parser.add_argument(
        '--download-concurrency',
        type=positive_int,
        default=4,
        metavar='N',
        help='Maximum images downloaded concurrently (default: 4)'
    )

    parser.add_argument(
        '--max-retries',
        type=positive_int,
        default=3,
        metavar='N',
        help='Attempts per request before giving up (default: 3)'
    )

    parser.add_argument(
        '--retry-delay',
        type=float,
        default=1.2,
        metavar='SECONDS',
        help='Base backoff delay; attempt N waits N times this (default: 1.2)'
    )

    parser.add_argument(
        '--log-dir',
        type=str,
        default='logs',
        metavar='DIR',
        help='Directory for log files and the error CSV (default: logs/)'
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point for the async scraper with CLI argument parsing."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.categories:
        try:
            categories = load_categories(args.categories)
        except (FileNotFoundError, ValueError) as e:
            parser.error(str(e))
    else:
        categories = list(DEFAULT_CATEGORIES)

    try:
        config = ScraperConfig(
            base_url=args.base_url,
            categories=categories,
            output_dir=Path(args.output),
            fetch_concurrency=args.fetch_concurrency,
            download_concurrency=args.download_concurrency,
            max_retries=args.max_retries,
            retry_base_delay=args.retry_delay,
            log_dir=Path(args.log_dir),
        )
    except ValueError as e:
        parser.error(str(e))

    scraper = AsyncCatalogScraper(config, category_filter=args.category)
    asyncio.run(scraper.run())


if __name__ == "__main__":
    main()
