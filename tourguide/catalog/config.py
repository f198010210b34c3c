from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_TOURS_CSV = Path(__file__).resolve().parent.parent / "data" / "tours.csv"


@dataclass(frozen=True)
class CatalogConfig:
    """
    Location of the tour catalog seed.
    """

    tours_path: Path = Path(os.getenv("TOURS_CSV", str(_DEFAULT_TOURS_CSV)))


DEFAULT_CATALOG_CONFIG = CatalogConfig()
