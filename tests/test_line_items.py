"""
Line-item breakdown of a transaction detail.
"""

import pytest

from line_items import line_items_total, parse_line_items


def test_products_then_services():
    detail = {
        "products": [
            {
                "product": {"name": "Cement bag", "hsn": "2523"},
                "quantity": 10,
                "unitType": "bag",
                "pricePerUnit": "400",
                "amount": 4000,
                "gstPercentage": 28,
                "lineTax": 1120,
            }
        ],
        "services": [
            {"service": {"serviceName": "Delivery", "sac": "9965"}, "description": "Site drop", "amount": 500, "lineTax": 90},
        ],
    }
    items = parse_line_items(detail)
    assert [i.item_type for i in items] == ["product", "service"]
    cement, delivery = items
    assert cement.name == "Cement bag"
    assert cement.code == "2523"
    assert cement.quantity == 10
    assert cement.price_per_unit == 400
    assert delivery.code == "9965"
    assert delivery.description == "Site drop"
    assert line_items_total(items) == pytest.approx(5710)


def test_single_service_object_and_placeholders():
    items = parse_line_items({"services": {"service": "svc-id", "amount": "150"}, "products": [{"amount": None}]})
    assert [i.name for i in items] == ["(product)", "svc-id"]
    assert items[0].amount == 0
    assert items[1].amount == 150


def test_service_list_under_singular_key():
    items = parse_line_items({"service": [{"service": None, "amount": 1, "sac": "9983"}]})
    assert items[0].name == "(service)"
    assert items[0].code == "9983"


def test_empty_detail():
    assert parse_line_items({}) == []
