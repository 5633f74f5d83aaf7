from dataclasses import dataclass, field
from typing import List, Optional, Union

PERSON = "person"
COMPANY = "company"

# Diagnostic reason codes
PERSON_MISSING_NAME_PARTS = "person_missing_name_parts"
COMPANY_MISSING_NAME = "company_missing_name"
UNRECOGNIZED_TYPE = "unrecognized_type"
EMPTY_NORMALIZED_KEY = "empty_normalized_key"
NO_OWNER_EXTRACTED = "no_owner_extracted"
NO_OWNER_EXTRACTED_GRANTEE = "no_owner_extracted_grantee"


@dataclass
class RawOwnerCandidate:
    text: str
    mailing_address: Optional[str] = None


@dataclass
class Person:
    first_name: Optional[str]
    last_name: Optional[str]
    middle_name: Optional[str] = None
    prefix_name: Optional[str] = None
    suffix_name: Optional[str] = None

    kind = PERSON

    def to_dict(self):
        return {
            "type": PERSON,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "middle_name": self.middle_name,
            "prefix_name": self.prefix_name,
            "suffix_name": self.suffix_name,
        }


@dataclass
class Company:
    name: Optional[str]

    kind = COMPANY

    def to_dict(self):
        return {"type": COMPANY, "name": self.name}


OwnerEntity = Union[Person, Company]


@dataclass(frozen=True)
class PersonHint:
    """A sub-line the classifier believes names a person, not yet parsed"""
    text: str


@dataclass(frozen=True)
class Reject:
    raw: str
    reason: str


def owner_from_dict(data):
    """Build an OwnerEntity from a sidecar owner dict; unknown shapes yield None"""
    if not isinstance(data, dict):
        return None
    owner_type = data.get("type")
    if owner_type == PERSON:
        return Person(
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            middle_name=data.get("middle_name"),
            prefix_name=data.get("prefix_name"),
            suffix_name=data.get("suffix_name"),
        )
    if owner_type == COMPANY:
        return Company(name=data.get("name"))
    return None


@dataclass(frozen=True)
class EntityRef:
    kind: str
    index: int

    @property
    def file_name(self):
        return f"{self.kind}_{self.index}.json"

    @property
    def rel_path(self):
        return f"./{self.file_name}"


@dataclass(frozen=True)
class SaleRecord:
    transfer_date: Optional[str]
    price: Optional[float]
    index: int

    @property
    def file_name(self):
        return f"sales_history_{self.index}.json"

    @property
    def rel_path(self):
        return f"./{self.file_name}"


@dataclass(frozen=True)
class Relationship:
    from_path: str
    to_path: str
    file_name: str

    def to_dict(self):
        return {"from": {"/": self.from_path}, "to": {"/": self.to_path}}


@dataclass
class Diagnostics:
    """Rejected raw owner strings, kept for manual QA"""
    entries: List[dict] = field(default_factory=list)

    def add(self, raw, reason):
        self.entries.append({"raw": raw, "reason": reason})

    def extend(self, entries):
        for entry in entries or []:
            if isinstance(entry, dict) and entry.get("reason"):
                self.add(entry.get("raw"), entry["reason"])

    def reasons(self):
        return [entry["reason"] for entry in self.entries]

    def __len__(self):
        return len(self.entries)

    def to_list(self):
        return list(self.entries)
