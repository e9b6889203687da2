"""
Logging framework for the catalog scraper.

Console output carries the human-readable progress lines, a timestamped log
file keeps the DEBUG detail (retries, skips), and every soft or hard failure
is appended to an error CSV so a run can be audited afterwards.
"""

import csv
import logging
import sys
from datetime import datetime
from pathlib import Path

LOGGER_NAME = "CatalogScraper"


class ScraperLogger:
    """Centralized logging system for the scraper."""

    def __init__(self, log_dir: str = "logs"):
        """Initialize logger with separate error and activity logs.

        Args:
            log_dir: Directory to store log files
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        # A new ScraperLogger owns the named logger; drop earlier handlers
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter('%(message)s'))

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_path = self.log_dir / f"scraper_{timestamp}.log"
        file_handler = logging.FileHandler(self.log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

        self.logger.addHandler(console_handler)
        self.logger.addHandler(file_handler)

        self.error_log_path = self.log_dir / f"errors_{timestamp}.csv"
        self._init_error_log()

    def _init_error_log(self):
        """Initialize the error log CSV file."""
        with open(self.error_log_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow([
                'timestamp', 'category', 'error_type', 'error_message', 'url'
            ])

    def log_error(self, category: str, error_type: str, error_message: str,
                  url: str = ""):
        """Log an error to both console and CSV file.

        Args:
            category: Category being processed when the error happened
            error_type: Type of error (e.g. 'CategoryAborted', 'DownloadError')
            error_message: Detailed error message
            url: URL that caused the error
        """
        timestamp = datetime.now().isoformat()

        self.logger.error(f"[{category}] {error_type}: {error_message}")

        with open(self.error_log_path, 'a', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow([timestamp, category, error_type, error_message, url])

    def info(self, message: str):
        """Log an info message."""
        self.logger.info(message)

    def debug(self, message: str):
        """Log a debug message."""
        self.logger.debug(message)

    def warning(self, message: str):
        """Log a warning message."""
        self.logger.warning(message)

    def close(self):
        """Flush and detach the handlers owned by this logger."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)
