"""Tests for the inventory agent."""

from agents.clinic_operations import InventoryAgent


async def _stock(repository, *items):
    for sku, quantity, unit_price in items:
        await repository.add_inventory("clinic-1", sku, quantity, name=sku.title(), unit_price=unit_price)


async def test_one_purchase_order_per_low_stock_item(repository, agent_kwargs):
    await _stock(repository, ("gloves", 2, 0.5), ("masks", 4, 1.0), ("gauze", 5, 2.0), ("floss", 30, 1.5))
    agent = InventoryAgent(repository, **agent_kwargs)

    report = await agent.run("clinic-1")

    assert [po.sku for po in report.purchase_orders] == ["gloves", "masks"]
    assert all(po.quantity == 100 for po in report.purchase_orders)
    assert [po.po_id for po in report.purchase_orders] == ["po-1", "po-2"]
    assert [(po.sku, po.quantity, po.status) for po in repository.purchase_orders] == [
        ("gloves", 100, "created"),
        ("masks", 100, "created"),
    ]


async def test_stock_analysis(repository, agent_kwargs):
    await _stock(repository, ("gloves", 0, 0.5), ("masks", 4, 1.0), ("floss", 30, 1.5))
    agent = InventoryAgent(repository, **agent_kwargs)

    analysis = (await agent.run("clinic-1")).analysis

    assert analysis.total_items == 3
    assert analysis.low_stock_items == 2
    assert analysis.out_of_stock_items == 1
    assert analysis.total_inventory_value == "49.00"
    assert analysis.low_stock_threshold == 5
    assert analysis.recommendation == "Stock levels healthy"
    assert [(s.sku, s.current_qty, s.suggested_qty) for s in analysis.items_needing_reorder] == [
        ("gloves", 0, 100),
        ("masks", 4, 100),
    ]


async def test_critical_when_many_items_low(repository, agent_kwargs):
    await _stock(repository, *[(f"sku{n}", 1, None) for n in range(4)])
    agent = InventoryAgent(repository, **agent_kwargs)

    report = await agent.run("clinic-1")

    assert report.analysis.recommendation == "Critical: Multiple items low in stock"
    assert report.analysis.total_inventory_value == "0.00"


async def test_reorder_quantity_from_config(repository, agent_kwargs, config):
    await _stock(repository, ("gloves", 1, None))
    agent_kwargs["config"] = config.model_copy(update={"reorder_quantity": 250})
    agent = InventoryAgent(repository, **agent_kwargs)

    report = await agent.run("clinic-1")

    assert report.purchase_orders[0].quantity == 250


async def test_failed_purchase_order_is_skipped(repository, agent_kwargs, logger, monkeypatch):
    await _stock(repository, ("gloves", 1, None), ("masks", 2, None), ("gauze", 3, None))
    real_add_purchase_order = repository.add_purchase_order

    async def flaky_add_purchase_order(purchase_order):
        if purchase_order.sku == "masks":
            raise RuntimeError("insert rejected")
        await real_add_purchase_order(purchase_order)

    monkeypatch.setattr(repository, "add_purchase_order", flaky_add_purchase_order)
    agent = InventoryAgent(repository, **agent_kwargs)

    report = await agent.run("clinic-1")

    assert [po.sku for po in report.purchase_orders] == ["gloves", "gauze"]
    logger.error.assert_any_call(
        "purchase_order_creation_failed", clinic_id="clinic-1", sku="masks", error="insert rejected"
    )


async def test_inventory_quantities_are_not_changed(repository, agent_kwargs):
    await _stock(repository, ("gloves", 1, None))
    agent = InventoryAgent(repository, **agent_kwargs)

    await agent.run("clinic-1")

    items = await repository.get_inventory_by_clinic("clinic-1")
    assert items[0].quantity == 1


async def test_every_run_reorders_again(repository, agent_kwargs):
    await _stock(repository, ("gloves", 1, None))
    agent = InventoryAgent(repository, **agent_kwargs)

    await agent.run("clinic-1")
    await agent.run("clinic-1")

    assert len(repository.purchase_orders) == 2
