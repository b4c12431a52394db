from .schemas import (
    FileListResponse,
    FileOut,
    FileQueryParams,
    FolderContentStats,
    FolderDeleteResult,
    FolderOrder,
    FolderOut,
    FolderTreeNode,
    HistoryAction,
    Pagination,
    SortField,
    SortOrder,
)

__all__ = [
    "SortField",
    "SortOrder",
    "HistoryAction",
    "FileQueryParams",
    "FolderOrder",
    "FolderContentStats",
    "FolderDeleteResult",
    "FolderOut",
    "FolderTreeNode",
    "FileOut",
    "Pagination",
    "FileListResponse",
]
