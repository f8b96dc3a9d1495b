"""Platform alias resolution.

Maps the platform ids a host library uses (e.g. "sega_genesis") to the
platform search keys of the games database (e.g. "segagenesis"). The table
lives in platforms.json; adding a platform is a data change.
"""

import json
from functools import lru_cache
from pathlib import Path


def get_platforms_config() -> dict:
    """Load the platform alias table from its JSON config file."""
    config_path = Path(__file__).parent / "platforms.json"
    with open(config_path) as f:
        return json.load(f)


@lru_cache(maxsize=1)
def get_platform_aliases() -> dict[str, str]:
    """Return the case-insensitive alias table, loaded once per process.

    Every reference-side key is also registered as an identity entry so
    resolving an id that already is a reference key returns it unchanged.
    """
    aliases = {
        alias.lower(): target
        for alias, target in get_platforms_config()["platform_aliases"].items()
    }
    for target in set(aliases.values()):
        aliases.setdefault(target.lower(), target)
    return aliases


def resolve_platform(host_platform_id: str | None) -> str:
    """Resolve a host platform id to the games database platform key.

    Args:
        host_platform_id: Platform id from the host, e.g. "Sega_Genesis"

    Returns:
        Mapped platform key, or the input unchanged if it has no alias
    """
    if not host_platform_id:
        return ""
    return get_platform_aliases().get(host_platform_id.lower(), host_platform_id)
