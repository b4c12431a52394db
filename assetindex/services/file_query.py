"""File query pipeline.

Turns FileQueryParams into SQL predicates, picks an execution plan and
paginates the result.

Execution plans:

    push_down   Every filter and the sort run in the database; count and page
                come back together. Used whenever possible.
    in_memory   Needed when a color filter (derived from the stored dominant
                color, not indexable) or a format sort (derived from the file
                extension) is requested. A bounded superset is fetched, filtered
                and/or sorted in Python, then sliced. Matches beyond the
                superset cap are silently missing from the result; this is
                logged and reported through ``truncated``.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from assetindex.db.models import File, FileTag
from assetindex.errors import NotFoundError
from assetindex.models.schemas import (
    FileListResponse,
    FileOut,
    FileQueryParams,
    Pagination,
    SortField,
    SortOrder,
)
from assetindex.repositories import FileRepository, FolderRepository, file_repository, folder_repository
from assetindex.services.color_classifier import matches_any_category
from assetindex.services.descendants import DescendantResolver, descendant_resolver
from assetindex.settings import settings
from assetindex.utils import get_logger, is_valid_id

logger = get_logger(__name__)

SORT_COLUMNS = {
    SortField.createdAt: File.created_at,
    SortField.updatedAt: File.updated_at,
    SortField.name: File.name,
    SortField.size: File.size,
    SortField.rating: File.rating,
}


class PlanMode(str, Enum):
    push_down = "push_down"
    in_memory = "in_memory"


@dataclass(frozen=True)
class QueryPlan:
    """How a query will be executed."""

    mode: PlanMode
    # Only for in_memory plans
    fetch_cap: int | None = None
    sort_in_database: bool = True
    color_filters: tuple[str, ...] = ()
    sort_by_format: bool = False


@dataclass
class FileQueryResult:
    files: list[File]
    total: int
    page: int
    limit: int
    plan: QueryPlan
    truncated: bool = False
    folder_ids: set[str] | None = field(default=None, repr=False)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def pagination(self) -> Pagination:
        return Pagination(
            page=self.page,
            limit=self.limit,
            total=self.total,
            totalPages=self.total_pages,
            truncated=self.truncated,
        )

    def to_response(self) -> FileListResponse:
        return FileListResponse(
            files=[FileOut.from_model(f) for f in self.files],
            pagination=self.pagination,
        )


def file_extension(file_name: str | None) -> str:
    """Lower-cased text after the last dot; the whole name when it has no dot."""
    if not file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].lower()


class FileQueryService:
    """Filtered, sorted and paginated file listing."""

    def __init__(
        self,
        file_repo: FileRepository = file_repository,
        folder_repo: FolderRepository = folder_repository,
        resolver: DescendantResolver = descendant_resolver,
        superset_cap: int | None = None,
        format_sort_cap: int | None = None,
    ):
        self._file_repo = file_repo
        self._folder_repo = folder_repo
        self._resolver = resolver
        self._superset_cap = superset_cap or settings.query_superset_cap
        self._format_sort_cap = format_sort_cap or settings.format_sort_superset_cap

    # ==================== Planning ====================

    def plan_query(self, params: FileQueryParams) -> QueryPlan:
        """Choose push-down execution unless a derived attribute is involved."""
        sort_by_format = params.sortBy == SortField.format
        if not params.color and not sort_by_format:
            return QueryPlan(mode=PlanMode.push_down)

        return QueryPlan(
            mode=PlanMode.in_memory,
            fetch_cap=self._format_sort_cap if sort_by_format else self._superset_cap,
            sort_in_database=not sort_by_format,
            color_filters=tuple(params.color),
            sort_by_format=sort_by_format,
        )

    def build_conditions(
        self, db: Session, params: FileQueryParams
    ) -> tuple[list[ColumnElement[bool]], set[str] | None]:
        """SQL predicates for every push-down-able filter.

        Returns:
            (conditions, folder id set of the folder filter or None)

        Raises:
            NotFoundError: folderId doesn't name an existing folder
        """
        conditions: list[ColumnElement[bool]] = []
        folder_ids: set[str] | None = None

        if params.folderId is not None:
            if not is_valid_id(params.folderId) or not self._folder_repo.exists(db, params.folderId):
                raise NotFoundError("Folder", params.folderId)
            # Always recursive into subfolders
            folder_ids = self._resolver.descendant_ids(db, params.folderId)
            conditions.append(File.folder_id.in_(sorted(folder_ids)))

        if params.search:
            conditions.append(
                or_(
                    File.name.contains(params.search, autoescape=True),
                    File.original_name.contains(params.search, autoescape=True),
                    File.annotation.contains(params.search, autoescape=True),
                )
            )

        if params.mimeType:
            conditions.append(File.mime_type.startswith(params.mimeType, autoescape=True))

        if params.format:
            # ANDed with the search clause, never merged into one flat OR
            format_conditions = []
            for ext in params.format:
                format_conditions.append(File.original_name.endswith(f".{ext}"))
                format_conditions.append(File.original_name.endswith(f".{ext.upper()}"))
            conditions.append(or_(*format_conditions))

        if params.color:
            conditions.append(File.dominant_color.is_not(None))

        if params.rating is not None and params.rating > 0:
            conditions.append(File.rating >= params.rating)

        if params.tagIds:
            tagged = select(FileTag.file_id).where(FileTag.tag_id.in_(params.tagIds))
            conditions.append(File.id.in_(tagged))

        return conditions, folder_ids

    def _order_by(self, params: FileQueryParams, in_database: bool) -> list[Any]:
        # id breaks ties so equal keys can't shuffle between pages
        if not in_database:
            return [File.id.asc()]
        column = SORT_COLUMNS.get(params.sortBy, File.created_at)
        if params.sortOrder == SortOrder.asc:
            return [column.asc(), File.id.asc()]
        return [column.desc(), File.id.desc()]

    # ==================== Execution ====================

    def query(
        self,
        db: Session,
        filters: FileQueryParams | Mapping[str, Any] | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> FileQueryResult:
        """Run a file query.

        Args:
            db: Database session
            filters: FileQueryParams or a raw mapping of query parameters
            page: 1-based page, overrides filters.page (clamped to >= 1)
            limit: Page size, overrides filters.limit (clamped to [1, 200])

        Returns:
            Page of files with the total match count

        Raises:
            NotFoundError: folderId doesn't name an existing folder
        """
        params = self._coerce_params(filters, page, limit)
        plan = self.plan_query(params)
        conditions, folder_ids = self.build_conditions(db, params)

        if plan.mode == PlanMode.push_down:
            files, total = self._file_repo.find_page_with_total(
                db,
                conditions,
                self._order_by(params, in_database=True),
                offset=(params.page - 1) * params.limit,
                limit=params.limit,
            )
            return FileQueryResult(
                files=files, total=total, page=params.page, limit=params.limit, plan=plan, folder_ids=folder_ids
            )

        return self._execute_in_memory(db, params, plan, conditions, folder_ids)

    def _execute_in_memory(
        self,
        db: Session,
        params: FileQueryParams,
        plan: QueryPlan,
        conditions: list[ColumnElement[bool]],
        folder_ids: set[str] | None,
    ) -> FileQueryResult:
        fetched = self._file_repo.find_bounded(
            db,
            conditions,
            self._order_by(params, in_database=plan.sort_in_database),
            cap=plan.fetch_cap,
        )

        truncated = len(fetched) >= plan.fetch_cap
        if truncated:
            logger.warning(
                f"File query superset hit its cap ({plan.fetch_cap} rows); "
                f"totals may be undercounted (color={list(plan.color_filters)}, sortBy={params.sortBy.value})"
            )

        files = fetched
        if plan.color_filters:
            colors = list(plan.color_filters)
            files = [f for f in files if matches_any_category(f.dominant_color, colors)]

        if plan.sort_by_format:
            # Stable sort: files sharing an extension keep their fetch order
            files = sorted(
                files,
                key=lambda f: file_extension(f.original_name),
                reverse=params.sortOrder == SortOrder.desc,
            )

        start = (params.page - 1) * params.limit
        return FileQueryResult(
            files=files[start : start + params.limit],
            total=len(files),
            page=params.page,
            limit=params.limit,
            plan=plan,
            truncated=truncated,
            folder_ids=folder_ids,
        )

    @staticmethod
    def _coerce_params(
        filters: FileQueryParams | Mapping[str, Any] | None,
        page: int | None,
        limit: int | None,
    ) -> FileQueryParams:
        if isinstance(filters, FileQueryParams):
            raw = filters.model_dump()
        else:
            raw = dict(filters or {})
        if page is not None:
            raw["page"] = page
        if limit is not None:
            raw["limit"] = limit
        return FileQueryParams.model_validate(raw)


# Singleton instance
file_query_service = FileQueryService()
