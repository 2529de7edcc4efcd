import pytest

from app.core.pagination import normalize_pagination, get_offset


@pytest.mark.parametrize(
    "page, page_size, expected",
    [
        (1, 10, (1, 10)),
        (3, 25, (3, 25)),
        (0, 10, (1, 10)),
        (-5, 10, (1, 10)),
        (2, 0, (2, 10)),
        (2, 101, (2, 10)),
        (2, 100, (2, 100)),
        (2, 1, (2, 1)),
    ],
)
def test_normalize_pagination(page, page_size, expected):
    assert normalize_pagination(page, page_size) == expected


def test_get_offset():
    assert get_offset(1, 10) == 0
    assert get_offset(3, 20) == 40


def test_product_list_normalizes_out_of_range_paging(client):
    response = client.get("/api/products", params={"page": 0, "page_size": 1000})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["page"] == 1
    assert data["page_size"] == 10
    assert data["list"] == []
    assert data["total"] == 0
