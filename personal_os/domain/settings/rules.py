"""
Domain taxonomy rules: one level of nesting, ordering among siblings.
"""
from __future__ import annotations

from typing import Optional, Sequence

from personal_os.domain.common.errors import NotFoundError, ValidationError
from personal_os.models import Domain


def siblings(domains: Sequence[Domain], parent_id: Optional[str]) -> list[Domain]:
    """Domains under the same parent, in display order."""
    group = [d for d in domains if (d.parent_id or None) == (parent_id or None)]
    return sorted(group, key=lambda d: (d.sort_order, d.name.casefold()))


def find_parent(domains: Sequence[Domain], name: str) -> Domain:
    """Top-level domain by name, case-insensitive. Children cannot have children."""
    wanted = name.strip().casefold()
    for d in domains:
        if d.name.casefold() == wanted:
            if d.parent_id:
                raise ValidationError(f"'{d.name}' is already a sub-domain; domains nest one level only.")
            return d
    raise ValidationError(f"No domain named '{name.strip()}'.")


def next_sort_order(domains: Sequence[Domain], parent_id: Optional[str]) -> int:
    group = siblings(domains, parent_id)
    return (group[-1].sort_order + 1) if group else 0


def move_up(domains: Sequence[Domain], domain_id: str) -> dict[str, int]:
    """
    New sort_order values after moving a domain one place up among its
    siblings. Only changed domains are returned; empty when already first.
    """
    target = next((d for d in domains if d.id == domain_id), None)
    if target is None:
        raise NotFoundError("Domain not found.")
    group = siblings(domains, target.parent_id)
    idx = [d.id for d in group].index(domain_id)
    if idx == 0:
        return {}
    group[idx - 1], group[idx] = group[idx], group[idx - 1]
    return {d.id: pos for pos, d in enumerate(group) if d.sort_order != pos}
