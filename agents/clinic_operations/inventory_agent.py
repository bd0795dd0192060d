"""
Inventory Agent

Monitors stock levels for a clinic and creates purchase orders for every
item below the low stock threshold.
"""

from typing import Optional

from pydantic import Field

from clinic_core.agent_orchestration.base_agent import AgentReport, BaseAgent, CamelModel
from clinic_core.clinic_data.models import InventoryItem, PurchaseOrder, PurchaseOrderStatus


# Report Models


class ReorderSuggestion(CamelModel):
    """Low stock item and the quantity to order."""

    sku: str
    name: Optional[str] = None
    current_qty: int
    suggested_qty: int


class StockAnalysis(CamelModel):
    """Stock level summary."""

    total_items: int
    low_stock_items: int
    out_of_stock_items: int
    total_inventory_value: str = Field(..., description="Sum of quantity x unit price, 2 decimals")
    low_stock_threshold: int
    recommendation: str
    items_needing_reorder: list[ReorderSuggestion] = Field(default_factory=list)


class CreatedPurchaseOrder(CamelModel):
    """Purchase order created during this run."""

    po_id: str
    sku: str
    item_name: Optional[str] = None
    quantity: int
    status: str = Field(default=PurchaseOrderStatus.CREATED.value)


class InventoryReport(AgentReport):
    """Output from inventory agent."""

    analysis: StockAnalysis
    purchase_orders: list[CreatedPurchaseOrder] = Field(default_factory=list)


# Agent Implementation


class InventoryAgent(BaseAgent[InventoryReport]):
    """
    Inventory Agent.

    Reorder quantity is a fixed configured value, not derived from usage.
    A failed purchase order insert is logged and skipped.
    """

    agent_type = "inventory"
    agent_name = "Inventory Agent"

    @property
    def low_stock_threshold(self) -> int:
        return self.config.low_stock_threshold

    def _low_stock(self, inventory: list[InventoryItem]) -> list[InventoryItem]:
        return [i for i in inventory if i.quantity < self.low_stock_threshold]

    async def _run_internal(self, clinic_id: str) -> InventoryReport:
        """Execute stock analysis and reordering."""
        inventory = await self.repository.get_inventory_by_clinic(clinic_id)
        now = self.clock()

        analysis = self.analyze_stock(inventory)
        purchase_orders = await self.create_purchase_orders(clinic_id, inventory)

        self.logger.info(
            "inventory_analysis",
            clinic_id=clinic_id,
            low_stock_items=analysis.low_stock_items,
            purchase_orders=len(purchase_orders),
        )

        return InventoryReport(
            agent=self.agent_name,
            timestamp=now,
            clinic_id=clinic_id,
            next_run=self._next_run(now),
            analysis=analysis,
            purchase_orders=purchase_orders,
        )

    def analyze_stock(self, inventory: list[InventoryItem]) -> StockAnalysis:
        low_stock = self._low_stock(inventory)
        total_value = sum(i.quantity * (i.unit_price or 0) for i in inventory)

        if len(low_stock) > self.config.critical_low_stock_count:
            recommendation = "Critical: Multiple items low in stock"
        else:
            recommendation = "Stock levels healthy"

        return StockAnalysis(
            total_items=len(inventory),
            low_stock_items=len(low_stock),
            out_of_stock_items=sum(1 for i in inventory if i.quantity == 0),
            total_inventory_value=f"{total_value:.2f}",
            low_stock_threshold=self.low_stock_threshold,
            recommendation=recommendation,
            items_needing_reorder=[
                ReorderSuggestion(
                    sku=i.sku,
                    name=i.name,
                    current_qty=i.quantity,
                    suggested_qty=self.config.reorder_quantity,
                )
                for i in low_stock
            ],
        )

    async def create_purchase_orders(
        self, clinic_id: str, inventory: list[InventoryItem]
    ) -> list[CreatedPurchaseOrder]:
        """One purchase order per low stock item."""
        orders = []
        reorder_qty = self.config.reorder_quantity

        for item in self._low_stock(inventory):
            po_id = self.id_generator.new_id("po")
            try:
                await self.repository.add_purchase_order(
                    PurchaseOrder(
                        id=po_id,
                        clinic_id=clinic_id,
                        sku=item.sku,
                        quantity=reorder_qty,
                        status=PurchaseOrderStatus.CREATED.value,
                        created_at=self.clock(),
                    )
                )
            except Exception as e:
                self.logger.error(
                    "purchase_order_creation_failed",
                    clinic_id=clinic_id,
                    sku=item.sku,
                    error=str(e),
                )
                continue

            orders.append(
                CreatedPurchaseOrder(
                    po_id=po_id, sku=item.sku, item_name=item.name, quantity=reorder_qty
                )
            )
            self.logger.info("purchase_order_created", po_id=po_id, sku=item.sku, quantity=reorder_qty)

        return orders
