"""
County DOM rules.

Each county module exposes the same functions over a BeautifulSoup document:
extract_parcel_id, extract_owner_candidates, extract_grantees_by_date,
extract_sales, extract_property and extract_layout_features, plus the
defaults NAME_ORDER_LAST_FIRST and REPAIR_DIGITS.
"""
import importlib
import logging

from ..errors import ConfigError

logger = logging.getLogger(__name__)

# Spellings that do not reduce to a module name on their own
SPECIAL_CASES = {
    "columbiacounty": "columbia",
    "charlottecounty": "charlotte",
}


def _name_variations(county_name):
    name = county_name.strip()
    variations = [
        name.lower(),
        name.lower().replace(" ", "_"),
        name.lower().replace(" ", ""),
    ]
    squashed = name.lower().replace(" ", "").replace("_", "")
    if squashed in SPECIAL_CASES:
        variations.append(SPECIAL_CASES[squashed])
    return list(dict.fromkeys(variations))


def get_county(county_name):
    """Import the county module matching `county_name` in any common spelling"""
    if not county_name or not str(county_name).strip():
        raise ConfigError("No county given")

    for variation in _name_variations(str(county_name)):
        module_name = f"{__name__}.{variation}"
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if e.name != module_name:
                raise
            continue
        logger.info(f"Found county module for {county_name!r}: {module.__name__}")
        return module

    raise ConfigError(f"No extractor for county {county_name!r}")
