import re
import logging
from dataclasses import replace

from ..utils import normalize_spaces
from .models import (
    COMPANY,
    COMPANY_MISSING_NAME,
    EMPTY_NORMALIZED_KEY,
    PERSON,
    PERSON_MISSING_NAME_PARTS,
    UNRECOGNIZED_TYPE,
    Company,
    Diagnostics,
    EntityRef,
    Person,
    owner_from_dict,
)
from .name_parser import normalize_person

logger = logging.getLogger(__name__)


def normalize_key(entity):
    """Lowercased, punctuation-free, whitespace-collapsed identity of an owner"""
    if isinstance(entity, Person):
        parts = [entity.first_name, entity.middle_name, entity.last_name, entity.suffix_name]
    elif isinstance(entity, Company):
        parts = [entity.name]
    else:
        return ""
    text = " ".join(part for part in parts if part).lower()
    text = re.sub(r"[^\w\s]|_", "", text)
    return normalize_spaces(text)


def _loose_key(person):
    """Person key without the middle name"""
    return normalize_key(replace(person, middle_name=None))


class EntityRegistry:
    """
    Ordered, deduplicated persons and companies for one extraction run.

    Every registered entity gets a 1-based index per kind at first insertion;
    indices never change afterwards because they name the output files.
    Owners that cannot be registered are recorded in `diagnostics`.
    """

    def __init__(self, repair_digits=False):
        self.repair_digits = repair_digits
        self.diagnostics = Diagnostics()
        self._entities = {PERSON: [], COMPANY: []}
        self._keys = {}
        self._loose_persons = {}

    @property
    def persons(self):
        return list(self._entities[PERSON])

    @property
    def companies(self):
        return list(self._entities[COMPANY])

    def __len__(self):
        return len(self._entities[PERSON]) + len(self._entities[COMPANY])

    def entries(self, kind):
        """Yield (EntityRef, entity) pairs of one kind in index order"""
        for position, entity in enumerate(self._entities[kind], start=1):
            yield EntityRef(kind, position), entity

    def get(self, ref):
        return self._entities[ref.kind][ref.index - 1]

    def coerce(self, owner):
        """Turn a sidecar dict or an entity into a normalized entity"""
        if isinstance(owner, dict):
            owner = owner_from_dict(owner)
        if isinstance(owner, Person):
            return normalize_person(owner, repair_digits=self.repair_digits)
        if isinstance(owner, Company):
            return Company(name=normalize_spaces(owner.name) or None)
        return None

    def _rejection_reason(self, entity):
        if isinstance(entity, Person):
            if not entity.first_name or not entity.last_name:
                return PERSON_MISSING_NAME_PARTS
        elif isinstance(entity, Company):
            if not entity.name:
                return COMPANY_MISSING_NAME
        else:
            return UNRECOGNIZED_TYPE
        if not normalize_key(entity):
            return EMPTY_NORMALIZED_KEY
        return None

    def _find(self, entity):
        key = normalize_key(entity)
        if key in self._keys:
            return self._keys[key]
        if isinstance(entity, Person):
            for ref in self._loose_persons.get(_loose_key(entity), []):
                existing = self.get(ref)
                if not existing.middle_name or not entity.middle_name:
                    return ref
        return None

    def lookup(self, owner):
        """Resolve an owner to its existing ref without inserting anything"""
        entity = self.coerce(owner)
        if entity is None or self._rejection_reason(entity):
            return None
        return self._find(entity)

    def register(self, owner, raw=None):
        """
        Add an owner, merging it with an existing entity of the same key.

        Returns the entity's EntityRef, or None when the owner was rejected.
        """
        entity = self.coerce(owner)
        if raw is None:
            raw = owner if isinstance(owner, str) else str(owner)

        reason = self._rejection_reason(entity)
        if reason:
            logger.info(f"Rejected owner {raw!r}: {reason}")
            self.diagnostics.add(raw, reason)
            return None

        key = normalize_key(entity)
        ref = self._find(entity)
        if ref is not None:
            if ref.kind != entity.kind:
                logger.info(f"Owner {raw!r} already registered as {ref.kind}; keeping {ref.file_name}")
                return ref
            existing = self.get(ref)
            if isinstance(existing, Person) and not existing.middle_name and entity.middle_name:
                existing.middle_name = entity.middle_name
                self._keys[normalize_key(existing)] = ref
            self._keys.setdefault(key, ref)
            return ref

        entities = self._entities[entity.kind]
        entities.append(entity)
        ref = EntityRef(entity.kind, len(entities))
        self._keys[key] = ref
        if isinstance(entity, Person):
            self._loose_persons.setdefault(_loose_key(entity), []).append(ref)
        logger.info(f"Registered {ref.file_name} for {raw!r}")
        return ref

    def register_owner(self, owner_dict, raw=None):
        """Register a sidecar owner dict ({"type": "person"|"company", ...})"""
        if raw is None:
            raw = _describe(owner_dict)
        if owner_from_dict(owner_dict) is None:
            self.diagnostics.add(raw, UNRECOGNIZED_TYPE)
            return None
        return self.register(owner_dict, raw=raw)


def _describe(owner):
    if not isinstance(owner, dict):
        return str(owner)
    if owner.get("type") == COMPANY:
        return owner.get("name") or ""
    parts = [owner.get(k) for k in ("prefix_name", "first_name", "middle_name", "last_name", "suffix_name")]
    return " ".join(p for p in parts if p)
