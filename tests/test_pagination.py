"""Tests for turning the catalog pagination block into page links."""

from fastapi.datastructures import URL

from storefront.models.pagination import PaginatedResponse

PAGE_URL = URL("http://testserver/api/v1/products/?category=jersey&page=2&limit=1")


def test_links_on_a_middle_page():
    page = PaginatedResponse[int].from_catalog([7], {"total": 3, "pages": 3}, PAGE_URL, page=2, limit=1)
    assert page.count == 3
    assert page.next == "http://testserver/api/v1/products/?category=jersey&page=3&limit=1"
    assert page.previous == "http://testserver/api/v1/products/?category=jersey&page=1&limit=1"


def test_legacy_total_pages_key():
    page = PaginatedResponse[int].from_catalog([7], {"total": 2, "totalPages": 2}, PAGE_URL, page=2, limit=1)
    assert page.next is None
    assert page.previous is not None


def test_malformed_block_falls_back_to_results():
    page = PaginatedResponse[int].from_catalog([1, 2], {"total": "many"}, PAGE_URL, page=1, limit=12)
    assert page.count == 2
    assert page.next is None
    assert page.previous is None
    assert PaginatedResponse[int].from_catalog([1], None, PAGE_URL, page=1, limit=12).count == 1
