"""List command: print every package in the catalog."""

import logging

from devstrap.config.catalog import Catalog

logger = logging.getLogger(__name__)


def run(args) -> int:
    catalog = Catalog.builtin()
    width = max((len(pid) for pid in catalog.ids()), default=0)

    print(f"Known packages ({len(catalog)}):")
    for package_id, mapping in catalog.items():
        description = mapping.description or ""
        print(f"  {package_id:<{width}}  {description}".rstrip())
    return 0
