from typing import Tuple

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_pagination(page: int, page_size: int) -> Tuple[int, int]:
    """Clamp page to >= 1 and fall back to the default size when page_size is outside [1, 100]."""
    if page < 1:
        page = DEFAULT_PAGE
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


def get_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size
