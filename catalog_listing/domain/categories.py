from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .models import Category, CategoryType

logger = logging.getLogger(__name__)


def _by_name(c: Category) -> str:
    return c.name.casefold()


@dataclass(frozen=True)
class CategoryIndex:
    """
    Lookup structures over one flat category snapshot.
    Read-only once built, so cycles can share it freely.
    """
    parents: List[Category] = field(default_factory=list)
    subs_by_parent: Dict[str, List[Category]] = field(default_factory=dict)
    parent_name_by_id: Dict[str, str] = field(default_factory=dict)
    parent_name_by_sub_name_lower: Dict[str, str] = field(default_factory=dict)
    orphans: List[Category] = field(default_factory=list)

    @classmethod
    def build(cls, categories: Iterable[Category]) -> "CategoryIndex":
        all_cats = list(categories)
        parents = sorted((c for c in all_cats if c.type == CategoryType.PARENT), key=_by_name)
        parent_name_by_id = {p.id: p.name for p in parents}

        subs_by_parent: Dict[str, List[Category]] = {}
        parent_by_sub: Dict[str, str] = {}
        orphans: List[Category] = []
        for sub in all_cats:
            if sub.type != CategoryType.SUB:
                continue
            parent_name = parent_name_by_id.get(sub.parent_category_id or "")
            if parent_name is None:
                orphans.append(sub)
                continue
            subs_by_parent.setdefault(sub.parent_category_id, []).append(sub)
            parent_by_sub[sub.name.lower()] = parent_name

        for subs in subs_by_parent.values():
            subs.sort(key=_by_name)

        if orphans:
            logger.debug("categories: %s orphan sub-categories skipped", len(orphans))

        return cls(
            parents=parents,
            subs_by_parent=subs_by_parent,
            parent_name_by_id=parent_name_by_id,
            parent_name_by_sub_name_lower=parent_by_sub,
            orphans=orphans,
        )

    def subs_of(self, parent_id: str) -> List[Category]:
        return list(self.subs_by_parent.get(parent_id, []))

    def parent_name_for_sub(self, sub_name: str) -> str | None:
        return self.parent_name_by_sub_name_lower.get(sub_name.lower())

    def tree(self) -> list[dict]:
        # Shape served by GET /categories
        return [
            {
                "id": p.id,
                "name": p.name,
                "subCategories": [{"id": s.id, "name": s.name} for s in self.subs_of(p.id)],
            }
            for p in self.parents
        ]
