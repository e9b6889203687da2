"""
Run configuration for the catalog scraper.

The category table maps a display name (used for the output folder) to the
relative path of its listing page on the site. It can be replaced by a JSON
file of the same shape; keys starting with ``_`` are treated as comments.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from http_fetcher import DEFAULT_USER_AGENT

DEFAULT_BASE_URL = "https://www.botech.ma/"
DEFAULT_OUTPUT_DIR = "botech_images"


@dataclass(frozen=True)
class CategorySpec:
    """A category listing page to crawl."""

    display_name: str
    relative_path: str


DEFAULT_CATEGORY_TABLE: Dict[str, str] = {
    "Fauteuils Médicals": "prod/fauteuils-medicals-maroc",
    "Lits hospitaliers": "cat/lits-hospitaliers-maroc",
    "Matelas médical": "prod/matelas-medical-maroc",
    "Table de chevet": "prod/table-de-chevet-maroc",
    "Table à manger": "prod/table-a-manger-maroc",
    "Berceaux": "prod/berceaux-maroc",
    "Chariots brancards": "prod/chariots-brancards-maroc",
    "Divan d'examen": "prod/divan-d-examen-maroc",
    "Tabourets": "prod/tabourets-maroc",
    "Éclairage médical": "prod/eclairage-medical-maroc",
    "Chariots": "prod/chariots-maroc",
    "Gynécologie": "prod/gynecologie-maroc",
    "Paravents": "prod/paravents-maroc",
    "Armoire et vitrine": "prod/armoire-et-vitrine-maroc",
    "Rééducation et massage": "prod/reeduction-et-massage-maroc",
    "Mobilier de bureau": "cat/mobilier-de-bureau-maroc",
    "Mobilier laboratoire": "prod/mobilier-laboratoire-maroc",
    "Couveuses néonatales": "prod/couveuses-neonatales-maroc",
    "Tables chauffantes": "prod/tables-chauffantes-maroc",
    "Appareils de photothérapie": "prod/appareils-de-phototherapie-maroc",
    "Gaines tête de lit": "prod/gaines-tete-de-lit-maroc",
    "Éclairage opératoire": "prod/eclairage-operatoire-maroc",
    "Diagnostique": "prod/diagnostique-maroc",
}


def categories_from_mapping(mapping: Dict[str, str]) -> List[CategorySpec]:
    """Build category specs from a name -> relative path mapping.

    Raises:
        ValueError: If a name or path is not a non-empty string
    """
    categories = []
    for name, path in mapping.items():
        if name.startswith('_'):
            continue
        if not isinstance(path, str) or not path.strip() or not name.strip():
            raise ValueError(f"Invalid category entry: {name!r} -> {path!r}")
        categories.append(CategorySpec(display_name=name, relative_path=path.strip()))
    return categories


DEFAULT_CATEGORIES: List[CategorySpec] = categories_from_mapping(DEFAULT_CATEGORY_TABLE)


def load_categories(config_file: str) -> List[CategorySpec]:
    """Load the category table from a JSON file.

    Args:
        config_file: Path to a JSON object mapping display name to path

    Returns:
        Category specs in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a valid category table
    """
    config_path = Path(config_file)
    if not config_path.exists():
        raise FileNotFoundError(f"Categories file not found: {config_file}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in categories file {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Categories file {config_file} must contain a JSON object")

    return categories_from_mapping(data)


def select_categories(categories: List[CategorySpec],
                      name_filter: Optional[str]) -> List[CategorySpec]:
    """Keep only the category whose name matches ``name_filter`` (case-insensitive)."""
    if not name_filter:
        return list(categories)
    wanted = name_filter.lower()
    return [c for c in categories if c.display_name.lower() == wanted]


@dataclass
class ScraperConfig:
    """Top-level settings passed to the run driver."""

    base_url: str = DEFAULT_BASE_URL
    categories: List[CategorySpec] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    fetch_concurrency: int = 4
    download_concurrency: int = 4
    max_retries: int = 3
    retry_base_delay: float = 1.2
    page_timeout: float = 30.0
    asset_timeout: float = 60.0
    user_agent: str = DEFAULT_USER_AGENT
    log_dir: Path = Path("logs")

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        self.log_dir = Path(self.log_dir)
        for name in ('fetch_concurrency', 'download_concurrency', 'max_retries'):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
