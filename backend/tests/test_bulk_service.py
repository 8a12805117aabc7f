from decimal import Decimal

import pytest

from configurator.core.exceptions import TemplateNotFoundError
from configurator.schemas.validation import EnumValue, NumberValue
from configurator.services import bulk_service
from configurator.services.catalog_store import CatalogStore


async def _add_products(db, category_id, count):
    store = CatalogStore(db)
    ids = []
    for i in range(count):
        product = await store.insert_product({
            "name": f"CPU {i}", "slug": f"cpu-{i}", "category_id": category_id, "price": Decimal("100"),
        })
        ids.append(product.id)
    return ids


async def _tdp_values(db, product_ids, template_id):
    values = {}
    for product in await CatalogStore(db).get_products(product_ids):
        for spec in product.specifications:
            if spec.template_id == template_id:
                values[product.id] = spec.typed_value
    return values


def test_bulk_apply_to_all_products(run, demo, registry):
    template_id = demo["templates"][("cpu", "tdp")]
    product_ids = run(_add_products, demo["categories"]["cpu"], 3) + [demo["products"]["ryzen-5-5600x"]]

    result = run(bulk_service.bulk_apply_specification, registry, template_id, product_ids, "95W")
    assert result.success_count == 4
    assert result.error_count == 0

    values = run(_tdp_values, product_ids, template_id)
    assert values == {pid: NumberValue(value=95, unit="W") for pid in product_ids}


def test_one_failure_does_not_stop_the_batch(run, demo, registry, monkeypatch):
    template_id = demo["templates"][("cpu", "tdp")]
    product_ids = run(_add_products, demo["categories"]["cpu"], 5)
    failing_id = product_ids[2]

    original = bulk_service.apply_to_product

    async def flaky_apply(db, template, product_id, typed):
        await original(db, template, product_id, typed)
        if product_id == failing_id:
            raise RuntimeError("constraint failed")

    monkeypatch.setattr(bulk_service, "apply_to_product", flaky_apply)
    result = run(bulk_service.bulk_apply_specification, registry, template_id, product_ids, "95W")

    assert result.success_count == 4
    assert result.error_count == 1
    assert result.errors[0].product_id == failing_id
    assert "constraint failed" in result.errors[0].error

    values = run(_tdp_values, product_ids, template_id)
    assert failing_id not in values
    assert len(values) == 4


def test_invalid_value_fails_every_product(run, demo, registry):
    template_id = demo["templates"][("cpu", "tdp")]
    product_ids = run(_add_products, demo["categories"]["cpu"], 2)

    result = run(bulk_service.bulk_apply_specification, registry, template_id, product_ids, "9000 W")
    assert result.success_count == 0
    assert result.error_count == 2
    assert {e.product_id for e in result.errors} == set(product_ids)
    assert not result.validation.is_valid
    assert run(_tdp_values, product_ids, template_id) == {}


def test_wrong_category_and_missing_product(run, demo, registry):
    template_id = demo["templates"][("cpu", "tdp")]
    board_id = demo["products"]["msi-b550-tomahawk"]

    result = run(bulk_service.bulk_apply_specification, registry, template_id, [board_id, 999], "65")
    assert result.success_count == 0
    assert [e.product_id for e in result.errors] == [board_id, 999]


def test_unknown_template(run, demo, registry):
    with pytest.raises(TemplateNotFoundError):
        run(bulk_service.bulk_apply_specification, registry, 999, [1], "65")


async def _spec_value(db, product_id, name):
    specs = await CatalogStore(db).get_product_specifications(product_id)
    return next(s.typed_value for s in specs if s.name == name)


def test_compatibility_key_is_checked_per_product(run, demo, registry):
    socket_id = demo["templates"][("motherboard", "socket")]
    b550 = demo["products"]["msi-b550-tomahawk"]
    z790 = demo["products"]["asus-z790-p"]

    result = run(bulk_service.bulk_apply_specification, registry, socket_id, [b550, z790], "AM4")
    assert result.success_count == 1
    assert result.error_count == 1
    assert result.errors[0].product_id == z790
    assert "Z790" in result.errors[0].error

    assert run(_spec_value, b550, "socket") == EnumValue(value="AM4")
    assert run(_spec_value, z790, "socket") == EnumValue(value="LGA1700")


def test_bulk_rejects_a_socket_the_chipset_cannot_take(run, demo, registry):
    socket_id = demo["templates"][("motherboard", "socket")]
    b550 = demo["products"]["msi-b550-tomahawk"]

    result = run(bulk_service.bulk_apply_specification, registry, socket_id, [b550], "LGA1700")
    assert result.success_count == 0
    assert [e.product_id for e in result.errors] == [b550]
    assert run(_spec_value, b550, "socket") == EnumValue(value="AM4")
