import pytest

from county_extractor.errors import ConfigError
from county_extractor.owners.linker import (
    CurrentOwnerFallback,
    fallback_sale,
    link_sale_to_owners,
    link_sales,
)
from county_extractor.owners.models import SaleRecord
from county_extractor.owners.registry import EntityRegistry

JANE = {"type": "person", "first_name": "Jane", "last_name": "Doe"}
JOHN = {"type": "person", "first_name": "John", "last_name": "Smith"}
ACME = {"type": "company", "name": "Acme LLC"}
STRANGER = {"type": "person", "first_name": "Nobody", "last_name": "Known"}

SALE_2020 = SaleRecord(transfer_date="2020-05-01", price=300000.0, index=1)
SALE_2005 = SaleRecord(transfer_date="2005-01-10", price=150000.0, index=2)
UNDATED = SaleRecord(transfer_date=None, price=None, index=3)


def registry_of(*owners):
    registry = EntityRegistry()
    for owner in owners:
        registry.register_owner(owner)
    return registry


def names(relationships):
    return [r.file_name for r in relationships]


def test_links_every_registered_owner_of_the_sale_date():
    registry = registry_of(JANE, JOHN, ACME)
    timeline = {"current": [JANE], "2020-05-01": [JOHN, ACME]}
    relationships = link_sale_to_owners(SALE_2020, timeline, registry)
    assert names(relationships) == [
        "relationship_sales_history_1_has_person_2.json",
        "relationship_sales_history_1_has_company_1.json",
    ]
    assert relationships[0].to_dict() == {
        "from": {"/": "./sales_history_1.json"},
        "to": {"/": "./person_2.json"},
    }


def test_same_owner_listed_twice_links_once():
    registry = registry_of(JOHN)
    timeline = {"2020-05-01": [JOHN, {"type": "person", "first_name": "JOHN", "last_name": "SMITH"}]}
    assert len(link_sale_to_owners(SALE_2020, timeline, registry)) == 1


def test_unregistered_owners_are_skipped_and_not_inserted():
    registry = registry_of(JOHN)
    timeline = {"2020-05-01": [STRANGER, JOHN]}
    assert names(link_sale_to_owners(SALE_2020, timeline, registry)) == [
        "relationship_sales_history_1_has_person_1.json"
    ]
    assert len(registry) == 1


def test_undated_sale_has_no_owners():
    registry = registry_of(JANE)
    assert link_sale_to_owners(UNDATED, {"current": [JANE]}, registry) == []


def test_no_fallback_by_default():
    registry = registry_of(JANE)
    timeline = {"current": [JANE]}
    assert link_sales([SALE_2020, SALE_2005], timeline, registry) == []


def test_first_sale_fallback_links_current_owners_to_earliest_sale():
    registry = registry_of(JANE)
    timeline = {"current": [JANE]}
    relationships = link_sales([SALE_2020, SALE_2005], timeline, registry, CurrentOwnerFallback.FIRST_SALE)
    assert names(relationships) == ["relationship_sales_history_2_has_person_1.json"]


def test_first_sale_fallback_skipped_when_that_date_has_owners():
    registry = registry_of(JANE, ACME)
    timeline = {"current": [JANE], "2005-01-10": [ACME]}
    relationships = link_sales([SALE_2020, SALE_2005], timeline, registry, "first_sale")
    assert names(relationships) == ["relationship_sales_history_2_has_company_1.json"]


def test_latest_sale_fallback_unions_current_owners():
    registry = registry_of(JANE, ACME)
    timeline = {"current": [JANE], "2020-05-01": [JANE, ACME]}
    relationships = link_sales([SALE_2005, SALE_2020], timeline, registry, CurrentOwnerFallback.LATEST_SALE)
    assert names(relationships) == [
        "relationship_sales_history_1_has_person_1.json",
        "relationship_sales_history_1_has_company_1.json",
    ]


def test_relationships_follow_sale_index_order():
    registry = registry_of(JOHN, ACME)
    timeline = {"2005-01-10": [ACME], "2020-05-01": [JOHN]}
    relationships = link_sales([SALE_2005, SALE_2020], timeline, registry)
    assert names(relationships) == [
        "relationship_sales_history_1_has_person_1.json",
        "relationship_sales_history_2_has_company_1.json",
    ]


def test_fallback_sale_needs_current_owners():
    assert fallback_sale([SALE_2020], {}, CurrentOwnerFallback.LATEST_SALE) is None
    assert fallback_sale([UNDATED], {"current": [JANE]}, CurrentOwnerFallback.FIRST_SALE) is None
    assert fallback_sale([SALE_2020, SALE_2005], {"current": [JANE]}, "latest_sale") == SALE_2020


def test_policy_parsing():
    assert CurrentOwnerFallback.parse("first-sale") is CurrentOwnerFallback.FIRST_SALE
    assert CurrentOwnerFallback.parse(" LATEST_SALE ") is CurrentOwnerFallback.LATEST_SALE
    assert CurrentOwnerFallback.parse(None) is CurrentOwnerFallback.NONE
    with pytest.raises(ConfigError):
        CurrentOwnerFallback.parse("every_sale")
