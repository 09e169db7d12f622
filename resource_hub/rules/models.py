from pydantic import BaseModel, Field

from resource_hub.domain.taxonomy import DEFAULT_TAXONOMY, Category, Taxonomy


class BrowserRules(BaseModel):
    page_size: int = Field(default=9, ge=1)
    debounce_ms: int = Field(default=200, ge=0)
    new_badge_days: int = Field(default=7, ge=0)


class TimeoutRules(BaseModel):
    query_seconds: float = Field(default=10.0, gt=0)
    session_seconds: float = Field(default=5.0, gt=0)


class CategoryRule(BaseModel):
    id: str
    name: str
    subcategories: list[str] = Field(default_factory=list)
    course_codes: bool = False


class TaxonomyRules(BaseModel):
    categories: list[CategoryRule] = Field(
        default_factory=lambda: [
            CategoryRule(
                id=c.id,
                name=c.name,
                subcategories=list(c.subcategories),
                course_codes=c.course_codes,
            )
            for c in DEFAULT_TAXONOMY.categories
        ]
    )

    def build(self) -> Taxonomy:
        return Taxonomy.from_categories(
            Category(
                id=c.id,
                name=c.name,
                subcategories=tuple(c.subcategories),
                course_codes=c.course_codes,
            )
            for c in self.categories
        )


class Rules(BaseModel):
    browser: BrowserRules = Field(default_factory=BrowserRules)
    timeouts: TimeoutRules = Field(default_factory=TimeoutRules)
    taxonomy: TaxonomyRules = Field(default_factory=TaxonomyRules)
