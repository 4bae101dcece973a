# genboq/category_resolver.py

import logging
from typing import Iterable, List, Optional

from genboq.room_profiles import ALL_SYSTEMS, ALWAYS_INCLUDED_CATEGORIES, CATEGORY_MAP

logger = logging.getLogger(__name__)


def resolve_categories(required_systems: Optional[Iterable[str]] = None) -> List[str]:
    """
    Map requirement systems ('display', 'audio', ...) to the catalog labels the
    excerpt is filtered on. None means every system. Unknown systems add nothing.
    The two service categories are always appended. Order is first-seen, no repeats.
    """
    if required_systems is None:
        required_systems = ALL_SYSTEMS
    elif isinstance(required_systems, str):
        required_systems = [required_systems]

    labels: List[str] = []
    for system in required_systems:
        mapped = CATEGORY_MAP.get(system)
        if mapped is None:
            logger.debug(f"Ignoring unknown requirement system '{system}'")
            continue
        labels.extend(mapped)
    labels.extend(ALWAYS_INCLUDED_CATEGORIES)

    return list(dict.fromkeys(labels))
