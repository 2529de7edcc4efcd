from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.e_commerce.models import Coupon, UserCoupon, CouponType

FMT = "%Y-%m-%d %H:%M:%S"


def window(days_before=1, days_after=1):
    now = datetime.now()
    return (now - timedelta(days=days_before)).strftime(FMT), (now + timedelta(days=days_after)).strftime(FMT)


@pytest.fixture
def percentage_coupon(db_session):
    start, end = window()
    coupon = Coupon(
        name="20% off", type=CouponType.PERCENTAGE, value=Decimal("0.80"), min_amount=Decimal("0"),
        start_time=start, end_time=end,
    )
    db_session.add(coupon)
    db_session.commit()
    return coupon


def test_list_shows_only_valid_coupons(client, db_session, percentage_coupon):
    start, end = window(days_before=10, days_after=-5)
    db_session.add(Coupon(name="expired", type=CouponType.FIXED_AMOUNT, value=5, min_amount=0, start_time=start, end_time=end))
    db_session.add(Coupon(name="broken", type=CouponType.FIXED_AMOUNT, value=5, min_amount=0, start_time="whenever", end_time="later"))
    db_session.commit()

    coupons = client.get("/api/coupons").json()["data"]

    assert [c["name"] for c in coupons] == ["20% off"]
    assert coupons[0]["display_text"] == "20% off"
    assert coupons[0]["received"] is False


def test_list_marks_held_coupons_for_logged_in_user(client, db_session, make_user, auth_headers, percentage_coupon):
    user = make_user()
    db_session.add(UserCoupon(user_id=user.user_id, coupon_id=percentage_coupon.coupon_id))
    db_session.commit()

    coupons = client.get("/api/coupons", headers=auth_headers(user)).json()["data"]
    assert coupons[0]["received"] is True


def test_discount_preview(client, percentage_coupon):
    response = client.get(f"/api/coupons/{percentage_coupon.coupon_id}/discount", params={"total": 100})

    data = response.json()["data"]
    assert data["valid"] is True
    assert data["discount"] == pytest.approx(20.0)
    assert data["pay_amount"] == pytest.approx(80.0)


def test_discount_preview_unknown_coupon(client):
    assert client.get("/api/coupons/999/discount", params={"total": 10}).status_code == 404


def test_admin_creates_coupon(client, admin_headers):
    start, end = window()
    payload = {"name": "Spend 100 save 15", "type": 1, "value": 15, "min_amount": 100, "start_time": start, "end_time": end}

    response = client.post("/api/coupons", json=payload, headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["data"]["display_text"] == "Spend 100.00 get 15.00 off"


def test_coupon_creation_validates_times(client, admin_headers):
    start, end = window()
    bad_format = {"name": "x", "type": 1, "value": 1, "start_time": "2024/01/01", "end_time": end}
    reversed_window = {"name": "x", "type": 1, "value": 1, "start_time": end, "end_time": start}

    assert client.post("/api/coupons", json=bad_format, headers=admin_headers).status_code == 400
    assert client.post("/api/coupons", json=reversed_window, headers=admin_headers).status_code == 400


@pytest.mark.parametrize("value", [0, 1, 8, 80])
def test_percentage_coupon_value_must_be_a_rate(client, db_session, admin_headers, value):
    start, end = window()
    payload = {"name": "discount", "type": 2, "value": value, "start_time": start, "end_time": end}

    response = client.post("/api/coupons", json=payload, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request parameters"
    assert db_session.query(Coupon).count() == 0


def test_admin_creates_percentage_coupon(client, admin_headers):
    start, end = window()
    payload = {"name": "20% off", "type": 2, "value": 0.8, "start_time": start, "end_time": end}

    response = client.post("/api/coupons", json=payload, headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["data"]["display_text"] == "20% off"


@pytest.mark.parametrize("total", ["inf", "-inf", "nan", "Infinity"])
def test_discount_preview_rejects_non_finite_total(client, percentage_coupon, total):
    response = client.get(f"/api/coupons/{percentage_coupon.coupon_id}/discount", params={"total": total})

    assert response.status_code == 400
    assert response.json()["code"] == 400
