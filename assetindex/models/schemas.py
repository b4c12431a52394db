"""Pydantic models for requests and responses of the content index.

Field names follow the browsing UI (camelCase); ORM models stay snake_case.
Filter parameters are sanitized rather than rejected: malformed filter input
degrades to fewer results and never raises.
"""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from assetindex.settings import settings
from assetindex.utils import is_valid_id

HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")
FORMAT_TOKEN_PATTERN = re.compile(r"^[a-z0-9]+$", re.IGNORECASE)

# Number of fixed color categories; more color filters than this can't be distinct
MAX_COLOR_FILTERS = 10

# Largest row offset a page may reach; keeps OFFSET inside a signed 64-bit integer
MAX_ROW_OFFSET = 2**62


class SortField(str, Enum):
    createdAt = "createdAt"
    updatedAt = "updatedAt"
    name = "name"
    size = "size"
    rating = "rating"
    format = "format"  # derived from the file extension, sorted in memory


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class HistoryAction(str, Enum):
    move = "move"
    rename = "rename"
    delete = "delete"
    restore = "restore"
    tag = "tag"
    rate = "rate"
    edit = "edit"


def _split_csv(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split(",")
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return []


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except OverflowError:
        return None
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return None


class FileQueryParams(BaseModel):
    """Filter, sort and pagination parameters of a file query.

    Every filter is optional; filters are combined with AND. Invalid values
    are clamped or dropped by the validators below.
    """

    folderId: str | None = None
    search: str | None = None
    mimeType: str | None = None
    format: list[str] = Field(default_factory=list)
    color: list[str] = Field(default_factory=list)
    rating: int | None = None
    tagIds: list[str] = Field(default_factory=list)
    sortBy: SortField = SortField.createdAt
    sortOrder: SortOrder = SortOrder.desc
    page: int = 1
    limit: int = settings.default_page_limit

    @field_validator("folderId", mode="before")
    @classmethod
    def normalize_folder_id(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("search", mode="before")
    @classmethod
    def truncate_search(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v)[: settings.max_search_length]
        return v or None

    @field_validator("mimeType", mode="before")
    @classmethod
    def truncate_mime_type(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v).strip()[: settings.max_mime_type_length]
        return v or None

    @field_validator("format", mode="before")
    @classmethod
    def parse_formats(cls, v: Any) -> list[str]:
        # Cap is applied before dropping bad tokens, so junk still counts against it
        tokens = [t.strip().lower() for t in _split_csv(v)][: settings.max_format_entries]
        result: list[str] = []
        for token in tokens:
            if FORMAT_TOKEN_PATTERN.match(token) and token not in result:
                result.append(token)
        return result

    @field_validator("color", mode="before")
    @classmethod
    def parse_colors(cls, v: Any) -> list[str]:
        result: list[str] = []
        for token in _split_csv(v):
            token = token.strip().lower()
            if HEX_COLOR_PATTERN.match(token) and token not in result:
                result.append(token)
        return result[:MAX_COLOR_FILTERS]

    @field_validator("rating", mode="before")
    @classmethod
    def clamp_rating(cls, v: Any) -> int | None:
        rating = _to_int(v)
        if rating is None:
            return None
        return min(5, max(0, rating))

    @field_validator("tagIds", mode="before")
    @classmethod
    def parse_tag_ids(cls, v: Any) -> list[str]:
        ids = [t.strip() for t in _split_csv(v)]
        return [t for t in ids if is_valid_id(t)][: settings.max_tag_ids]

    @field_validator("sortBy", mode="before")
    @classmethod
    def default_sort_field(cls, v: Any) -> SortField:
        try:
            return SortField(v)
        except ValueError:
            return SortField.createdAt

    @field_validator("sortOrder", mode="before")
    @classmethod
    def default_sort_order(cls, v: Any) -> SortOrder:
        if isinstance(v, SortOrder):
            return v
        try:
            return SortOrder(str(v).lower()) if v is not None else SortOrder.desc
        except ValueError:
            return SortOrder.desc

    @field_validator("page", mode="before")
    @classmethod
    def clamp_page(cls, v: Any) -> int:
        page = _to_int(v)
        if page is None:
            return 1
        return min(max(1, page), MAX_ROW_OFFSET // settings.max_page_limit + 1)

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, v: Any) -> int:
        limit = _to_int(v)
        if limit is None or limit == 0:
            return settings.default_page_limit
        return min(settings.max_page_limit, max(1, limit))


class FolderOrder(BaseModel):
    """One entry of a reorder batch."""

    id: str
    sortOrder: int

    @field_validator("id")
    @classmethod
    def check_id(cls, v: str) -> str:
        if not is_valid_id(v):
            raise ValueError("Invalid folder id")
        return v

    @field_validator("sortOrder", mode="before")
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("sortOrder must be an integer")
        return v


class FolderContentStats(BaseModel):
    """Recursive content of a folder (the folder itself not counted)."""

    totalFiles: int
    totalFolders: int


class FolderDeleteResult(BaseModel):
    """Outcome of a successful folder delete."""

    folderId: str
    filesDeleted: int
    foldersDeleted: int
    cascade: bool


class FolderOut(BaseModel):
    id: str
    name: str
    parentId: str | None = None
    color: str | None = None
    icon: str | None = None
    sortOrder: int
    createdAt: int
    updatedAt: int

    @classmethod
    def from_model(cls, folder: Any) -> "FolderOut":
        return cls(
            id=folder.id,
            name=folder.name,
            parentId=folder.parent_id,
            color=folder.color,
            icon=folder.icon,
            sortOrder=folder.sort_order,
            createdAt=folder.created_at,
            updatedAt=folder.updated_at,
        )


class FolderTreeNode(FolderOut):
    fileCount: int = 0
    children: list["FolderTreeNode"] = Field(default_factory=list)


class FileOut(BaseModel):
    id: str
    name: str
    originalName: str
    path: str
    thumbnailPath: str | None = None
    mimeType: str
    size: int
    width: int | None = None
    height: int | None = None
    dominantColor: str | None = None
    rating: int
    annotation: str | None = None
    folderId: str | None = None
    tagIds: list[str] = Field(default_factory=list)
    createdAt: int
    updatedAt: int

    @classmethod
    def from_model(cls, file: Any) -> "FileOut":
        return cls(
            id=file.id,
            name=file.name,
            originalName=file.original_name,
            path=file.storage_path,
            thumbnailPath=file.thumbnail_path,
            mimeType=file.mime_type,
            size=file.size,
            width=file.width,
            height=file.height,
            dominantColor=file.dominant_color,
            rating=file.rating,
            annotation=file.annotation,
            folderId=file.folder_id,
            tagIds=[link.tag_id for link in file.tags],
            createdAt=file.created_at,
            updatedAt=file.updated_at,
        )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    truncated: bool = False


class FileListResponse(BaseModel):
    files: list[FileOut]
    pagination: Pagination
