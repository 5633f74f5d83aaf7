"""Owner name/entity resolution: classify, parse, deduplicate and link to sales."""
from .classifier import classify, classify_owner_line, split_joint_owners
from .linker import CurrentOwnerFallback, link_sale_to_owners, link_sales
from .models import Company, Diagnostics, EntityRef, Person, RawOwnerCandidate, Reject, SaleRecord
from .name_parser import format_name, parse_person, repair_digit_confusions
from .registry import EntityRegistry, normalize_key
