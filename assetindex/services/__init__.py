from .color_classifier import COLOR_CATEGORIES, hex_to_hsl, matches_any_category, matches_category
from .descendants import DescendantResolver, descendant_resolver
from .file_query import FileQueryResult, FileQueryService, QueryPlan, file_query_service
from .file_service import FileService, file_service
from .folder_service import FolderService, folder_service
from .folder_tree_cache import FolderTreeCache, folder_tree_cache
from .history import HistoryService, history_service

__all__ = [
    "COLOR_CATEGORIES",
    "hex_to_hsl",
    "matches_category",
    "matches_any_category",
    "FolderTreeCache",
    "folder_tree_cache",
    "DescendantResolver",
    "descendant_resolver",
    "HistoryService",
    "history_service",
    "FolderService",
    "folder_service",
    "FileQueryService",
    "FileQueryResult",
    "QueryPlan",
    "file_query_service",
    "FileService",
    "file_service",
]
