"""
Sample catalog data for a fresh radiocalico database.
"""

import logging
from datetime import date

from .catalog import CatalogManager

logger = logging.getLogger(__name__)

SEED_CATALOG = [
    {
        "host": {
            "name": "DJ Luna",
            "bio": "Bringing you the best indie and alternative tracks from around the globe. "
            "Music enthusiast with 10+ years of radio experience.",
            "email": "luna@radiocalico.com",
        },
        "show": {
            "title": "Indie Horizons",
            "description": "Discover emerging indie artists and hidden gems from the alternative music scene.",
            "air_time": "Weekdays 9 AM - 12 PM",
        },
        "playlist": {"name": "Indie Morning Mix", "date": date(2025, 11, 18)},
        "songs": [
            ("Crystal Dreams", "The Morning Coast", "Sunrise Sessions", 245),
            ("Fading Light", "Velvet Echoes", "Reflections", 198),
            ("Northern Winds", "Arctic Mono", "Frozen Tales", 213),
            ("Summer in Berlin", "The Indie Collective", "European Nights", 267),
        ],
    },
    {
        "host": {
            "name": 'Marcus "The Groove" Johnson',
            "bio": "Your guide through the world of jazz, soul, and R&B. "
            "Keeping the classics alive while discovering new talents.",
            "email": "marcus@radiocalico.com",
        },
        "show": {
            "title": "Groove Sessions",
            "description": "Classic jazz, smooth soul, and contemporary R&B flowing seamlessly into your afternoon.",
            "air_time": "Weekdays 2 PM - 6 PM",
        },
        "playlist": {"name": "Soulful Afternoon", "date": date(2025, 11, 19)},
        "songs": [
            ("Smooth Operator", "Marcus Trio", "Live at the Blue Note", 312),
            ("Midnight Blues", "Sarah Jones", "Soul Stories", 278),
            ("Take Five", "Classic Jazz Ensemble", "Timeless", 324),
        ],
    },
    {
        "host": {
            "name": "Elektra Wave",
            "bio": "Electronic music curator specializing in ambient, techno, and experimental sounds. "
            "Late night vibes guaranteed.",
            "email": "elektra@radiocalico.com",
        },
        "show": {
            "title": "Midnight Frequency",
            "description": "Deep electronic explorations for the nocturnal listener. "
            "Ambient soundscapes and techno journeys.",
            "air_time": "Weeknights 10 PM - 2 AM",
        },
        "playlist": {"name": "Late Night Electronica", "date": date(2025, 11, 20)},
        "songs": [
            ("Digital Horizon", "Synthwave Collective", "Neon Dreams", 402),
            ("Deep Space", "Ambient Dreams", "Cosmos", 456),
            ("Berlin After Dark", "Techno Pioneers", "Underground", 378),
            ("Transcendence", "Elektra Wave", "Original Mix", 511),
            ("Orbital Station", "Space Cadets", "Journey to the Stars", 389),
        ],
    },
]


def seed_catalog(catalog: CatalogManager) -> bool:
    """
    Load the sample catalog into an empty database.

    Returns:
        True if data was written, False if the catalog already had hosts
    """
    if catalog.list_hosts():
        logger.info("Catalog already has hosts, skipping seed")
        return False

    for entry in SEED_CATALOG:
        host = catalog.create_host(**entry["host"])
        show = catalog.create_show(host_id=host.id, **entry["show"])
        playlist = catalog.create_playlist(
            entry["playlist"]["name"], entry["playlist"]["date"], show.id
        )
        for title, artist, album, duration in entry["songs"]:
            catalog.create_song(title, artist, playlist.id, album=album, duration=duration)

    logger.info("Seeded %d shows", len(SEED_CATALOG))
    return True
