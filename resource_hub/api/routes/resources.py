"""Routes for browsing and submitting directory resources."""

from typing import NoReturn
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from resource_hub.adapters.clock import SystemClock
from resource_hub.api.deps import (
    get_clock,
    get_record_service,
    get_resolver,
    get_rules,
    get_taxonomy,
    get_viewer,
)
from resource_hub.components.filters import FilterState
from resource_hub.components.query import QueryResolver
from resource_hub.components.records import (
    CreateRecordInput,
    DeleteRecordInput,
    RecordOperationOutput,
    RecordService,
    run_create,
    run_delete,
)
from resource_hub.components.render import Option, render
from resource_hub.components.tags import TagAggregator
from resource_hub.domain.entities import ViewerContext
from resource_hub.domain.taxonomy import Taxonomy
from resource_hub.rules.models import Rules

router = APIRouter()

ERROR_STATUS = {
    "sign_in_required": 401,
    "forbidden": 403,
    "record_not_found": 404,
    "store_error": 503,
}


# --- Request/Response Models ---


class OptionResponse(BaseModel):
    label: str
    value: str
    selected: bool


class CardResponse(BaseModel):
    id: str
    title: str
    url: str
    category_label: str
    description: str
    tags: list[str]
    votes: int
    is_new: bool
    can_delete: bool
    approved: bool


class PagerResponse(BaseModel):
    page: int
    total_pages: int
    has_prev: bool
    has_next: bool


class BrowseResponse(BaseModel):
    items: list[CardResponse]
    total: int
    count_text: str
    status: str
    degraded_notice: str
    pager: PagerResponse
    category_options: list[OptionResponse]
    subcategory_options: list[OptionResponse]
    tag_options: list[OptionResponse]


class ResourceCreateRequest(BaseModel):
    title: str
    url: str
    category: str
    subcategory: str = ""
    tags: list[str] | str = []
    description: str = ""


class ResourceResponse(BaseModel):
    id: str
    title: str
    url: str
    category: str
    subcategory: str
    tags: list[str]
    description: str
    votes: int
    approved: bool


class CategoryResponse(BaseModel):
    id: str
    name: str
    subcategories: list[str]
    course_codes: bool


def _options(options: tuple[Option, ...]) -> list[OptionResponse]:
    return [OptionResponse(label=o.label, value=o.value, selected=o.selected) for o in options]


def _raise_for(result: RecordOperationOutput) -> NoReturn:
    codes = [e.code for e in result.errors]
    status = next((ERROR_STATUS[c] for c in codes if c in ERROR_STATUS), 400)
    raise HTTPException(
        status_code=status,
        detail=[{"code": e.code, "message": e.message, "field": e.field} for e in result.errors],
    )


# --- Routes ---


@router.get("/resources", response_model=BrowseResponse)
async def browse_resources(
    q: str = "",
    category: str = "all",
    subcategory: str = "",
    tag: str = "",
    page: int = Query(default=1, ge=1),
    viewer: ViewerContext = Depends(get_viewer),
    resolver: QueryResolver = Depends(get_resolver),
    taxonomy: Taxonomy = Depends(get_taxonomy),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> BrowseResponse:
    """One page of the directory, rendered for the caller."""
    filters = FilterState(page_size=rules.browser.page_size)
    filters.set_query(q)
    filters.set_category(category)
    filters.set_subcategory(subcategory)
    filters.set_tag(tag)
    filters.set_page(page)
    snapshot = filters.snapshot()

    result = await resolver.resolve(snapshot, viewer)
    tags = TagAggregator()
    tags.absorb(result.records)

    plan = render(
        records=result.records,
        total_count=result.total,
        tags=tags.snapshot(),
        filters=snapshot,
        is_privileged=viewer.is_privileged,
        taxonomy=taxonomy,
        now=clock.now_utc(),
        status=result.error or "",
        degraded=result.degraded,
    )

    return BrowseResponse(
        items=[
            CardResponse(
                id=str(c.id),
                title=c.title,
                url=c.url,
                category_label=c.category_label,
                description=c.description,
                tags=list(c.tags),
                votes=c.votes,
                is_new=c.is_new,
                can_delete=c.can_delete,
                approved=c.approved,
            )
            for c in plan.cards
        ],
        total=result.total,
        count_text=plan.count_text,
        status=plan.status_text,
        degraded_notice=plan.degraded_notice,
        pager=PagerResponse(
            page=plan.pager.page,
            total_pages=plan.pager.total_pages,
            has_prev=plan.pager.has_prev,
            has_next=plan.pager.has_next,
        ),
        category_options=_options(plan.category_options),
        subcategory_options=_options(plan.subcategory_options),
        tag_options=_options(plan.tag_options),
    )


@router.post("/resources", response_model=ResourceResponse, status_code=201)
async def create_resource(
    data: ResourceCreateRequest,
    viewer: ViewerContext = Depends(get_viewer),
    service: RecordService = Depends(get_record_service),
) -> ResourceResponse:
    """Submit a new resource. Non-admin submissions wait for approval."""
    input_data = CreateRecordInput(
        title=data.title,
        url=data.url,
        category=data.category,
        subcategory=data.subcategory,
        tags=data.tags,
        description=data.description,
    )

    result = await run_create(input_data, viewer, service)
    if not result.success or result.record is None:
        _raise_for(result)

    record = result.record
    return ResourceResponse(
        id=str(record.id),
        title=record.title,
        url=record.url,
        category=record.category,
        subcategory=record.subcategory,
        tags=list(record.tags),
        description=record.description,
        votes=record.votes,
        approved=record.approved,
    )


@router.delete("/resources/{record_id}", status_code=204)
async def delete_resource(
    record_id: UUID,
    viewer: ViewerContext = Depends(get_viewer),
    service: RecordService = Depends(get_record_service),
) -> None:
    """Delete a resource (admins only)."""
    result = await run_delete(DeleteRecordInput(record_id=record_id), viewer, service)
    if not result.success:
        _raise_for(result)


@router.get("/taxonomy", response_model=list[CategoryResponse])
def list_taxonomy(taxonomy: Taxonomy = Depends(get_taxonomy)) -> list[CategoryResponse]:
    return [
        CategoryResponse(
            id=c.id,
            name=c.name,
            subcategories=list(c.subcategories),
            course_codes=c.course_codes,
        )
        for c in taxonomy.categories
    ]
