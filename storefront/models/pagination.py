# storefront/models/pagination.py
import logging
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field
from fastapi.datastructures import URL

logger = logging.getLogger(__name__)

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Страница списка в формате витрины: count/next/previous/results.
    Каталог отдаёт блок pagination вида {"total": N, "pages": M} (в старых
    ответах - "totalPages"); from_catalog переводит его в ссылки на соседние страницы.
    """
    count: int = Field(..., description="Total number of items available.")
    next: Optional[str] = Field(None, description="URL to the next page of results.")
    previous: Optional[str] = Field(None, description="URL to the previous page of results.")
    results: List[T] = Field(..., description="The list of items for the current page.")

    @classmethod
    def from_catalog(
        cls,
        results: List[T],
        pagination: Dict[str, Any],
        url: URL,
        page: int,
        limit: int,
    ) -> "PaginatedResponse[T]":
        if not isinstance(pagination, dict):
            pagination = {}
        try:
            total_count = int(pagination.get('total', len(results)))
            total_pages = int(pagination.get('pages', pagination.get('totalPages', page)))
        except (ValueError, TypeError):
            logger.warning(f"Could not parse pagination info from catalog: {pagination!r}")
            total_count, total_pages = len(results), page

        next_url = str(url.replace_query_params(page=page + 1, limit=limit)) if page < total_pages else None
        previous_url = str(url.replace_query_params(page=page - 1, limit=limit)) if page > 1 else None
        return cls(count=total_count, next=next_url, previous=previous_url, results=results)
