"""Canonical job domain vocabulary.

User preferences store domain ids (``software``, ``data_science``, ...) while
job postings carry human-readable scope titles ("Software", "Data Science").
Both sides meet here: a scope token resolves to a canonical id only if it
names a vocabulary entry, either by title or by id.
"""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class DomainEntry:
    """A single vocabulary entry."""

    id: str
    title: str
    category: str


_CATEGORIES: Dict[str, List[Tuple[str, str]]] = {
    "R&D / Engineering": [
        ("software", "Software"),
        ("hardware", "Hardware"),
        ("firmware", "Firmware"),
        ("devops", "DevOps"),
        ("production_engineering", "Production Engineering"),
        ("sre", "SRE"),
        ("qa", "QA"),
        ("automation", "Automation"),
        ("systems", "Systems"),
        ("cybersecurity", "Cybersecurity"),
        ("mechanical", "Mechanical"),
        ("security", "Security"),
    ],
    "Data & Research": [
        ("research", "Research"),
        ("data_engineering", "Data Engineering"),
        ("data_science", "Data Science"),
        ("data_analytics_bi", "Data Analytics / BI"),
        ("machine_learning_ai", "Machine Learning / AI"),
    ],
    "Product & Business": [
        ("product_management", "Product Management"),
        ("project_management", "Project Management"),
        ("program_management", "Program Management"),
        ("business_analysis", "Business Analysis"),
        ("business_development", "Business Development"),
        ("operations", "Operations"),
        ("customer_success_support", "Customer Success / Support"),
    ],
    "Sales & Corporate": [
        ("sales", "Sales"),
        ("marketing", "Marketing"),
        ("finance", "Finance"),
        ("legal", "Legal"),
        ("hr_people", "HR / People"),
        ("it_sysadmin", "IT / SysAdmin"),
        ("procurement_supply_chain", "Procurement / Supply Chain"),
    ],
    "Design": [
        ("product_design", "Product Design"),
        ("ux_ui_design", "UX/UI Design"),
        ("visual_creative_design", "Visual / Creative Design"),
    ],
}

DOMAIN_ENTRIES: Tuple[DomainEntry, ...] = tuple(
    DomainEntry(id=domain_id, title=title, category=category)
    for category, entries in _CATEGORIES.items()
    for domain_id, title in entries
)


def _lookup_key(text: str) -> str:
    return re.sub(r"\s+", " ", text.strip()).lower()


# Titles and ids share one lookup table so canonical ids resolve to themselves.
_LOOKUP: Dict[str, str] = {}
for _entry in DOMAIN_ENTRIES:
    _LOOKUP[_lookup_key(_entry.title)] = _entry.id
    _LOOKUP[_lookup_key(_entry.id)] = _entry.id


def resolve_domain(scope: Optional[str]) -> Optional[str]:
    """Resolve a raw job scope token to its canonical domain id.

    Matching is case-insensitive and whole-token: "data science" and
    "Data Science" resolve to ``data_science``, "Data" does not resolve.

    Args:
        scope: Raw scope token (one comma-separated element of ``job_scope``)

    Returns:
        Canonical domain id, or None if the token is not in the vocabulary
    """
    if not scope or not scope.strip():
        return None
    return _LOOKUP.get(_lookup_key(scope))


def all_domain_ids() -> FrozenSet[str]:
    """Return every canonical domain id."""
    return frozenset(entry.id for entry in DOMAIN_ENTRIES)


def categories() -> Dict[str, List[DomainEntry]]:
    """Return vocabulary entries grouped by category, in declaration order."""
    grouped: Dict[str, List[DomainEntry]] = {}
    for entry in DOMAIN_ENTRIES:
        grouped.setdefault(entry.category, []).append(entry)
    return grouped
