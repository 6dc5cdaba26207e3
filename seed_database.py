#!/usr/bin/env python3
"""
Quick script to load the sample catalog (hosts, shows, playlists, songs).

Usage: uv run python seed_database.py [DB_PATH]
"""

import sys

from radiocalico.catalog import CatalogManager
from radiocalico.database import Database
from radiocalico.seed import seed_catalog


def main():
    db_path = sys.argv[1] if len(sys.argv) > 1 else None

    print("Seeding database...")
    db = Database(db_path)
    catalog = CatalogManager(db)

    if seed_catalog(catalog):
        print("✓ Database seeding completed successfully!")
        print(f"  Hosts: {len(catalog.list_hosts())}")
        print(f"  Shows: {len(catalog.list_shows())}")
        print(f"  Songs: {len(catalog.list_songs())}")
    else:
        print("✗ Catalog already contains data, nothing to do")

    db.close()


if __name__ == "__main__":
    main()
