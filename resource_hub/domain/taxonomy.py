"""
Static category taxonomy.

Maps category id -> display name -> allowed subcategories. Used by the
renderer to build filter options and by record write validation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

ALL_CATEGORY = "all"


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    subcategories: tuple[str, ...] = ()
    # Course categories take free-form course codes (e.g. MATH101) as subcategory
    course_codes: bool = False


@dataclass(frozen=True)
class Taxonomy:
    categories: tuple[Category, ...] = field(default_factory=tuple)

    @classmethod
    def from_categories(cls, categories: Iterable[Category]) -> Taxonomy:
        cats = list(categories)
        if not any(c.id == ALL_CATEGORY for c in cats):
            cats.insert(0, Category(id=ALL_CATEGORY, name="All"))
        return cls(categories=tuple(cats))

    def get(self, category_id: str) -> Category | None:
        return next((c for c in self.categories if c.id == category_id), None)

    def label_of(self, category_id: str) -> str:
        category = self.get(category_id)
        return category.name if category else category_id

    def subcategories_of(self, category_id: str) -> tuple[str, ...]:
        category = self.get(category_id)
        return category.subcategories if category else ()

    def is_assignable(self, category_id: str) -> bool:
        """True when a record may be filed under this category."""
        return category_id != ALL_CATEGORY and self.get(category_id) is not None

    def uses_course_codes(self, category_id: str) -> bool:
        category = self.get(category_id)
        return bool(category and category.course_codes)

    def assignable(self) -> list[Category]:
        return [c for c in self.categories if c.id != ALL_CATEGORY]


DEFAULT_TAXONOMY = Taxonomy.from_categories(
    [
        Category(id=ALL_CATEGORY, name="All"),
        Category(
            id="admin", name="School Admin", subcategories=("Calendar", "Clubs", "Counseling")
        ),
        Category(id="math", name="Math", subcategories=("Algebra", "Calculus", "Geometry")),
        Category(id="science", name="Science", subcategories=("Biology", "Chemistry", "Physics")),
        Category(id="computing", name="Computing", subcategories=("Web Dev", "Python", "AI")),
        Category(id="writing", name="Writing", subcategories=("Grammar", "Essays", "Citations")),
        Category(
            id="wellness", name="Wellness", subcategories=("Mental Health", "Fitness", "Nutrition")
        ),
        Category(id="courses", name="Courses", course_codes=True),
    ]
)
