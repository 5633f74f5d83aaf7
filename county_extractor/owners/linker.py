"""
Links sales to the owners recorded on their transfer date.

Owners are only resolved against the registry here; nothing is registered at
link time, so an owner that failed registration simply produces no edge.
"""
import logging
from enum import Enum

from ..errors import ConfigError
from .models import Relationship

logger = logging.getLogger(__name__)

CURRENT = "current"


class CurrentOwnerFallback(Enum):
    """Which sale, if any, is also linked to the "current" owners"""

    NONE = "none"
    FIRST_SALE = "first_sale"
    LATEST_SALE = "latest_sale"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        normalized = str(value or "none").strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(policy.value for policy in cls)
            raise ConfigError(f"Unknown owner fallback policy {value!r} (expected one of: {choices})")


def relationship_file_name(sale, ref):
    return f"relationship_sales_history_{sale.index}_has_{ref.kind}_{ref.index}.json"


def link_sale_to_owners(sale, timeline, registry, fallback_owners=None):
    """
    Build one relationship per (sale, resolved owner).

    Owners listed under the sale's transfer date come first in timeline order,
    followed by `fallback_owners` when the caller's policy supplies them.
    """
    owners = list(timeline.get(sale.transfer_date) or []) if sale.transfer_date else []
    owners.extend(fallback_owners or [])

    relationships = []
    seen = set()
    for owner in owners:
        ref = registry.lookup(owner)
        if ref is None:
            logger.info(f"Sale {sale.index}: owner {owner!r} not in registry, skipping")
            continue
        if ref in seen:
            continue
        seen.add(ref)
        relationships.append(
            Relationship(
                from_path=sale.rel_path,
                to_path=ref.rel_path,
                file_name=relationship_file_name(sale, ref),
            )
        )
    return relationships


def _chronological(sales):
    dated = [sale for sale in sales if sale.transfer_date]
    return sorted(dated, key=lambda sale: (sale.transfer_date, sale.index))


def fallback_sale(sales, timeline, policy):
    """The sale that also receives the current owners under `policy`, if any"""
    policy = CurrentOwnerFallback.parse(policy)
    ordered = _chronological(sales)
    if not ordered or not timeline.get(CURRENT):
        return None
    if policy == CurrentOwnerFallback.FIRST_SALE:
        first = ordered[0]
        return None if timeline.get(first.transfer_date) else first
    if policy == CurrentOwnerFallback.LATEST_SALE:
        return ordered[-1]
    return None


def link_sales(sales, timeline, registry, policy=CurrentOwnerFallback.NONE):
    """Link every sale, in ascending index order, to its contemporaneous owners"""
    target = fallback_sale(sales, timeline, policy)
    relationships = []
    for sale in sorted(sales, key=lambda s: s.index):
        fallback_owners = timeline.get(CURRENT) if target is not None and sale.index == target.index else None
        relationships.extend(link_sale_to_owners(sale, timeline, registry, fallback_owners))
    return relationships
