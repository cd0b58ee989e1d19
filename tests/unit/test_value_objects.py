from decimal import Decimal

import pytest

from tenancy.domain.entities import ShopSetup
from tenancy.domain.value_objects import AlertChannel, AlertRules, AlertType, CollectionName


def test_alert_rules_defaults():
    rules = AlertRules()
    assert rules.max_pending_orders == 10
    assert rules.max_waiting_time == 30
    assert rules.check_interval == 5
    assert rules.alert_channels == (AlertChannel.DASHBOARD,)


def test_alert_rules_with_channels_accepts_strings():
    rules = AlertRules.with_channels(["dashboard", "email"])
    assert rules.alert_channels == (AlertChannel.DASHBOARD, AlertChannel.EMAIL)
    assert rules.to_dict()["alert_channels"] == ["dashboard", "email"]


@pytest.mark.parametrize("field", ["max_pending_orders", "max_waiting_time", "check_interval"])
def test_alert_rules_reject_non_positive(field):
    with pytest.raises(ValueError):
        AlertRules(**{field: 0})


def test_alert_rules_reject_unknown_channel():
    with pytest.raises(ValueError):
        AlertRules.with_channels(["pager"])


def test_alert_rules_from_dict_fills_missing_keys():
    rules = AlertRules.from_dict({"max_waiting_time": 45})
    assert rules.max_waiting_time == 45
    assert rules.max_pending_orders == 10
    assert AlertRules.from_dict(None) == AlertRules()


def test_alert_type_parse_falls_back_to_unknown():
    assert AlertType.parse("order_overflow") is AlertType.ORDER_OVERFLOW
    assert AlertType.parse("disk_full") is AlertType.UNKNOWN


def test_collection_name_parse():
    assert CollectionName.parse("alerts_history") is CollectionName.ALERTS_HISTORY
    assert CollectionName.parse("customers") is None


def test_shop_setup_from_mapping_reads_camel_case_recommendations():
    setup = ShopSetup.from_mapping(
        {
            "tenant_id": "shop_001",
            "name": "Noodle Corner",
            "dishes": [
                {"id": 1, "name": "Beef Noodles", "price": "18.50", "tags": ["hot"]},
                {"id": 2, "name": "Dumplings", "price": 12},
                {"id": 3, "name": "Soy Milk", "price": "4.00"},
            ],
            "recommendDishes": [2, 1],
        }
    )
    assert setup.recommend_dishes == (2, 1)
    assert [d.id for d in setup.dishes] == [1, 2, 3]
    assert setup.dishes[0].price == Decimal("18.50")
    assert setup.dishes[0].tags == ("hot",)
    assert "dishes" not in setup.tenant_fields()
    assert setup.tenant_fields()["tenant_id"] == "shop_001"


def test_shop_setup_without_catalog():
    setup = ShopSetup.from_mapping({"tenant_id": "t1", "name": "Bare"})
    assert setup.dishes == ()
    assert setup.recommend_dishes is None
