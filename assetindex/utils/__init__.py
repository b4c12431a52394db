from .id_generator import ID_PATTERN, generate_id, is_valid_id
from .logging import get_logger, setup_logging
from .time_utils import get_timestamp_ms

__all__ = [
    "ID_PATTERN",
    "generate_id",
    "is_valid_id",
    "get_logger",
    "setup_logging",
    "get_timestamp_ms",
]
