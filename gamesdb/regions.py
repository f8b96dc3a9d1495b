"""Region priority lists.

A region priority list maps a LaunchBox region name to a rank (0 = most
preferred). It is derived per request from the region the host supplies, the
No-Intro tags in a ROM file name, or an alternate name's region, and is used
to break ties between otherwise equal artwork. Untagged assets are ranked
under the empty string key.
"""

import json
import logging
import math
import re
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

UNTAGGED = ""
WORLD = "World"

# Pattern matches (content) in a file name: "Sonic (USA, Europe).md"
TAG_PATTERN = re.compile(r"\(([^\)]+)\)")


@lru_cache(maxsize=1)
def get_regions_config() -> dict:
    """Load region aliases, groups and the default ordering from regions.json."""
    config_path = Path(__file__).parent / "regions.json"
    with open(config_path) as f:
        return json.load(f)


def _region_names() -> dict[str, str]:
    """LaunchBox region names keyed by their lowercase form."""
    config = get_regions_config()
    names = {name.lower(): name for name in config["default_order"] if name}
    names.update(config["region_aliases"])
    return names


def canonical_region(text: str | None) -> str | None:
    """Map a region descriptor ("USA", "eu", "North America") to a LaunchBox region.

    Returns None if the text isn't a known region.
    """
    if not text or not text.strip():
        return None
    return _region_names().get(text.strip().lower())


def _region_group(region: str) -> list[str]:
    for group in get_regions_config()["region_groups"]:
        if group[0] == region:
            return group
    return [region]


def _to_priority(order: list[str]) -> dict[str, int]:
    """Convert an ordered region list to ranks, first occurrence wins."""
    priority: dict[str, int] = {}
    for region in order:
        if region not in priority:
            priority[region] = len(priority)
    return priority


def default_priority() -> dict[str, int]:
    """Fixed fallback ordering used when no region signal exists."""
    return _to_priority(get_regions_config()["default_order"])


def priority_from_region(region_text: str | None) -> dict[str, int]:
    """Build a region priority list from a region descriptor.

    The region itself ranks first, then its neighbours ("Europe" is
    followed by "United Kingdom", "Germany", ...), then World, untagged
    assets, and finally the default ordering. Comma-separated descriptors
    ("USA, Europe") rank each named region in order before the neighbours
    of the first one. An unknown region is kept verbatim at the head of the
    default ordering so assets tagged with it still win.
    """
    if not region_text or not region_text.strip():
        return default_priority()

    parts = [p.strip() for p in region_text.split(",") if p.strip()]
    regions = [canonical_region(p) or p for p in parts]

    order = list(regions)
    if canonical_region(parts[0]):
        order.extend(_region_group(regions[0]))
        order.extend([WORLD, UNTAGGED])
    order.extend(get_regions_config()["default_order"])

    priority = _to_priority(order)
    logger.debug("Region priority for '%s': %s", region_text, list(priority))
    return priority


def region_from_file_path(path: str | None) -> str:
    """Extract a region from a ROM file name using the No-Intro tag convention.

    Only tags made up entirely of known regions count, so language tags like
    "(En,Fr,De)" are skipped. For multi-region tags the first region wins.

    Args:
        path: ROM path, e.g. "/roms/md/Sonic the Hedgehog (USA, Europe).md"

    Returns:
        LaunchBox region name ("North America"), or "" if the name has none
    """
    if not path:
        return ""

    filename = Path(path.replace("\\", "/")).name
    for tag in TAG_PATTERN.findall(filename):
        parts = [p.strip() for p in tag.split(",")]
        regions = [canonical_region(p) for p in parts]
        if regions and all(regions):
            return regions[0]

    return ""


def region_rank(priority: dict[str, int], region: str | None) -> float:
    """Rank of a region in a priority list; regions not listed rank last."""
    return priority.get(region or UNTAGGED, math.inf)
