from decimal import Decimal

from orders.calculations import (
    calculate_discount,
    calculate_eligible_subtotal,
    calculate_order_totals,
    calculate_shipping,
    calculate_tax,
)


def line(item_id, price, quantity, product_id=None, category_id=1):
    return {
        "id": item_id,
        "product_id": product_id or item_id,
        "category_id": category_id,
        "name": f"Item {item_id}",
        "price": Decimal(price),
        "quantity": quantity,
    }


def test_subtotal_at_threshold_ships_free():
    totals = calculate_order_totals([line(1, "25", 2)])

    assert totals["subtotal"] == Decimal("50")
    assert totals["shipping"] == Decimal("0")
    assert totals["tax"] == Decimal("0")
    assert totals["total"] == Decimal("50")


def test_mixed_lines_above_threshold():
    totals = calculate_order_totals([line(1, "30", 2), line(2, "25", 1)])

    assert totals["subtotal"] == Decimal("85")
    assert totals["shipping"] == Decimal("0")
    assert totals["total"] == Decimal("85")


def test_subtotal_below_threshold_pays_flat_shipping():
    totals = calculate_order_totals([line(1, "20", 2)])

    assert totals["subtotal"] == Decimal("40")
    assert totals["shipping"] == Decimal("5")
    assert totals["total"] == Decimal("45")


def test_shipping_uses_pre_discount_subtotal():
    assert calculate_shipping(Decimal("49.99")) == Decimal("5")
    assert calculate_shipping(Decimal("50.00")) == Decimal("0")


def test_percent_discount():
    items = [line(1, "100", 2)]
    result = calculate_discount("percent", Decimal("10"), Decimal("200"), items, [1])

    assert result["discount"] == Decimal("20")
    assert result["applied_to_items"][0]["discount"] == Decimal("20")


def test_fixed_discount_is_capped_at_eligible_subtotal():
    items = [line(1, "15", 1)]

    capped = calculate_discount("fixed", Decimal("25"), Decimal("15"), items, [1])
    under = calculate_discount("fixed", Decimal("5"), Decimal("15"), items, [1])

    assert capped["discount"] == Decimal("15")
    assert under["discount"] == Decimal("5")


def test_fixed_discount_split_in_proportion():
    items = [line(1, "30", 1), line(2, "10", 1)]
    result = calculate_discount("fixed", Decimal("8"), Decimal("40"), items, [1, 2])

    shares = {entry["item_id"]: entry["discount"] for entry in result["applied_to_items"]}
    assert shares[1] == Decimal("6")
    assert shares[2] == Decimal("2")


def test_unknown_coupon_type_discounts_nothing():
    result = calculate_discount("bogo", Decimal("10"), Decimal("100"), [line(1, "100", 1)], [1])
    assert result["discount"] == Decimal("0")


def test_eligible_subtotal_without_restrictions_covers_everything():
    items = [line(1, "10", 1), line(2, "20", 1)]
    result = calculate_eligible_subtotal(items)

    assert result["subtotal"] == Decimal("30")
    assert result["eligible_item_ids"] == [1, 2]


def test_eligible_subtotal_matches_product_or_category():
    items = [
        line(1, "10", 1, product_id=101, category_id=1),
        line(2, "20", 1, product_id=102, category_id=2),
        line(3, "40", 1, product_id=103, category_id=3),
    ]
    result = calculate_eligible_subtotal(items, eligible_product_ids=[101], eligible_category_ids=[3])

    assert result["subtotal"] == Decimal("50")
    assert result["eligible_item_ids"] == [1, 3]


def test_coupon_only_discounts_eligible_lines():
    items = [
        line(1, "100", 1, product_id=101, category_id=1),
        line(2, "50", 1, product_id=102, category_id=2),
    ]
    coupon = {
        "type": "percent",
        "value": Decimal("10"),
        "eligible_product_ids": [102],
        "eligible_category_ids": [],
    }
    totals = calculate_order_totals(items, coupon)

    assert totals["eligible_subtotal"] == Decimal("50")
    assert totals["discount"] == Decimal("5")
    assert totals["total"] == Decimal("145")


def test_tax_applies_to_discounted_subtotal():
    assert calculate_tax(Decimal("100"), Decimal("20"), Decimal("0.18")) == Decimal("14.40")
    assert calculate_tax(Decimal("10"), Decimal("20"), Decimal("0.18")) == Decimal("0")


def test_total_never_negative():
    coupon = {"type": "fixed", "value": Decimal("500"), "eligible_product_ids": [], "eligible_category_ids": []}
    totals = calculate_order_totals([line(1, "60", 1)], coupon)

    assert totals["discount"] == Decimal("60")
    assert totals["total"] == Decimal("0")
