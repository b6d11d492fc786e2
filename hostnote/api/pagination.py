"""Lenient limit/offset handling shared by list endpoints."""

from typing import Optional


def resolve_page(
    limit: Optional[int],
    offset: Optional[int],
    default_limit: int,
    max_limit: int,
) -> tuple[int, int]:
    """
    Clamp client paging parameters.

    Out-of-range limits fall back to the default rather than failing the
    request; a negative or missing offset becomes 0.
    """
    if limit is None or limit <= 0 or limit > max_limit:
        limit = default_limit
    if offset is None or offset < 0:
        offset = 0
    return limit, offset
