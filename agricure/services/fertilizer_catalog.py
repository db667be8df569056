"""
Fertilizer catalog and crop type table.

Both are loaded from data/fertilizer_catalog.json and cached for the life of
the process. The cached dicts are shared; callers must not mutate them.
"""
import json
import logging
import os
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

FERTILIZER_CATALOG_PATH = os.path.join(
    os.path.dirname(__file__), "..", "data", "fertilizer_catalog.json"
)

_catalog_cache = None


def clear_catalog_cache():
    """Clear the cache to reload the catalog on next call."""
    global _catalog_cache
    _catalog_cache = None


def load_catalog() -> Dict:
    """Load the fertilizer catalog and crop types from JSON file."""
    global _catalog_cache
    if _catalog_cache is not None:
        return _catalog_cache

    with open(FERTILIZER_CATALOG_PATH, "r", encoding="utf-8") as f:
        _catalog_cache = json.load(f)
    logger.info(
        f"[Catalog] Loaded {len(_catalog_cache.get('fertilizers', {}))} fertilizers, "
        f"{len(_catalog_cache.get('crop_types', {}))} crop types"
    )
    return _catalog_cache


def get_crop_types() -> Dict[str, int]:
    return load_catalog().get("crop_types", {})


def get_fertilizer_info(name: str) -> Optional[Dict[str, str]]:
    """Return catalog entry for a fertilizer name, or None if not cataloged."""
    if not name:
        return None
    return load_catalog().get("fertilizers", {}).get(name)


def get_fertilizer_names() -> List[str]:
    return list(load_catalog().get("fertilizers", {}).keys())


def crop_name_for_id(crop_type_id: Optional[int]) -> Optional[str]:
    """Reverse lookup of the crop type table."""
    if crop_type_id is None:
        return None
    for name, crop_id in get_crop_types().items():
        if crop_id == crop_type_id:
            return name
    return None


def resolve_crop_type(crop: Union[int, str, None]) -> Optional[int]:
    """
    Resolve a crop given as integer id, numeric string, or name to its id.

    Names are matched case-insensitively. Unknown crops return None so the
    fallback selector can route them to its generic rule.
    """
    if crop is None or isinstance(crop, bool):
        return None

    crop_types = get_crop_types()

    if isinstance(crop, int):
        return crop if crop in crop_types.values() else None

    normalized = str(crop).strip()
    if not normalized:
        return None

    if normalized.lstrip("-").isdigit():
        return resolve_crop_type(int(normalized))

    for name, crop_id in crop_types.items():
        if name.lower() == normalized.lower():
            return crop_id

    logger.info(f"[Catalog] Unknown crop '{crop}' - generic rules apply")
    return None


def get_crop_options() -> List[Dict[str, Union[str, int]]]:
    """Crop options for dropdowns."""
    return [
        {"value": name, "label": name, "id": crop_id}
        for name, crop_id in get_crop_types().items()
    ]
