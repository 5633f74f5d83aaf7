from county_extractor.owners.models import (
    COMPANY_MISSING_NAME,
    EMPTY_NORMALIZED_KEY,
    PERSON_MISSING_NAME_PARTS,
    UNRECOGNIZED_TYPE,
    Company,
    EntityRef,
    Person,
)
from county_extractor.owners.registry import EntityRegistry, normalize_key


def test_normalize_key():
    assert normalize_key(Person(first_name="John", last_name="Smith", middle_name="A.")) == "john a smith"
    assert normalize_key(Person(first_name="John", last_name="Smith", prefix_name="Mr.")) == "john smith"
    assert normalize_key(Person(first_name="John", last_name="Smith", suffix_name="Jr.")) == "john smith jr"
    assert normalize_key(Company(name="  Acme,   Holdings  L.L.C. ")) == "acme holdings llc"
    assert normalize_key("not an owner") == ""


def test_register_is_idempotent():
    registry = EntityRegistry()
    first = registry.register(Person(first_name="John", last_name="Smith"))
    second = registry.register(Person(first_name="JOHN", last_name="SMITH"))
    assert first == second == EntityRef("person", 1)
    assert len(registry) == 1


def test_indices_are_per_kind_and_in_insertion_order():
    registry = EntityRegistry()
    refs = [
        registry.register(Person(first_name="John", last_name="Smith")),
        registry.register(Company(name="Acme LLC")),
        registry.register(Person(first_name="Jane", last_name="Doe")),
    ]
    assert refs == [EntityRef("person", 1), EntityRef("company", 1), EntityRef("person", 2)]
    assert [ref.file_name for ref in refs] == ["person_1.json", "company_1.json", "person_2.json"]
    assert [p.first_name for p in registry.persons] == ["John", "Jane"]


def test_missing_middle_name_is_filled_from_later_occurrence():
    registry = EntityRegistry()
    ref = registry.register(Person(first_name="John", last_name="Smith"))
    assert registry.register(Person(first_name="John", last_name="Smith", middle_name="Allen")) == ref
    assert registry.get(ref).middle_name == "Allen"
    assert registry.lookup(Person(first_name="John", last_name="Smith", middle_name="Allen")) == ref
    assert registry.lookup(Person(first_name="John", last_name="Smith")) == ref


def test_present_middle_name_is_never_overwritten():
    registry = EntityRegistry()
    ref = registry.register(Person(first_name="John", last_name="Smith", middle_name="Allen"))
    assert registry.register(Person(first_name="John", last_name="Smith")) == ref
    assert registry.get(ref).middle_name == "Allen"


def test_different_middle_names_are_different_people():
    registry = EntityRegistry()
    first = registry.register(Person(first_name="John", last_name="Smith", middle_name="Allen"))
    second = registry.register(Person(first_name="John", last_name="Smith", middle_name="Bruce"))
    assert first != second
    assert len(registry.persons) == 2


def test_key_belongs_to_the_first_kind_registered():
    registry = EntityRegistry()
    company_ref = registry.register(Company(name="John Smith"))
    assert registry.register(Person(first_name="John", last_name="Smith")) == company_ref
    assert registry.persons == []
    assert registry.companies == [Company(name="John Smith")]


def test_rejections_are_recorded_with_reason_codes():
    registry = EntityRegistry()
    assert registry.register(Person(first_name=None, last_name="Smith"), raw="SMITH") is None
    assert registry.register(Company(name="   "), raw="blank") is None
    assert registry.register(Company(name="!!!"), raw="!!!") is None
    assert registry.register("SMITH JOHN") is None
    assert registry.register_owner({"type": "robot", "name": "R2"}) is None

    assert registry.diagnostics.reasons() == [
        PERSON_MISSING_NAME_PARTS,
        COMPANY_MISSING_NAME,
        EMPTY_NORMALIZED_KEY,
        UNRECOGNIZED_TYPE,
        UNRECOGNIZED_TYPE,
    ]
    assert registry.diagnostics.to_list()[0] == {"raw": "SMITH", "reason": PERSON_MISSING_NAME_PARTS}
    assert len(registry) == 0


def test_lookup_never_inserts():
    registry = EntityRegistry()
    assert registry.lookup(Person(first_name="Ann", last_name="Lee")) is None
    assert registry.lookup({"type": "company", "name": "Acme LLC"}) is None
    assert len(registry) == 0
    assert len(registry.diagnostics) == 0


def test_register_owner_normalizes_sidecar_dicts():
    registry = EntityRegistry()
    ref = registry.register_owner({"type": "person", "first_name": "jane", "last_name": "DOE", "middle_name": None})
    assert registry.get(ref) == Person(first_name="Jane", last_name="Doe")
    assert registry.register_owner({"type": "company", "name": "Acme  LLC"}) == EntityRef("company", 1)
    assert registry.lookup({"type": "company", "name": "ACME LLC"}) == EntityRef("company", 1)


def test_digit_repair_applies_to_registered_names():
    registry = EntityRegistry(repair_digits=True)
    ref = registry.register_owner({"type": "person", "first_name": "J0HN", "last_name": "5M1TH"})
    assert registry.get(ref) == Person(first_name="John", last_name="Smith")
