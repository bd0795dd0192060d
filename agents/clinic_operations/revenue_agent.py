"""
Revenue Agent

Tracks paid and unpaid invoices for a clinic and raises payment reminders
for every unpaid invoice.
"""

import math
from datetime import datetime
from typing import Optional

from pydantic import Field

from clinic_core.agent_orchestration.base_agent import AgentReport, BaseAgent, CamelModel
from clinic_core.clinic_data.models import Clinic, Invoice
from clinic_core.shared_services.clock import as_utc


# Report Models


class RevenueAnalysis(CamelModel):
    """Invoice totals; money figures are strings with 2 decimals."""

    total_invoices: int
    paid_invoices: int
    unpaid_invoices: int
    total_amount: str
    paid_amount: str
    unpaid_amount: str
    collection_rate: str = Field(..., description="Percentage of invoiced amount paid, e.g. '22.22%'")
    recommendation: str
    action: str


class UnpaidNotification(CamelModel):
    """Payment reminder raised for one unpaid invoice."""

    invoice_id: str
    amount: Optional[float] = None
    days_overdue: int
    status: str = Field(default="notification_sent")


class RevenueReport(AgentReport):
    """Output from revenue agent."""

    analysis: RevenueAnalysis
    notified: list[UnpaidNotification] = Field(default_factory=list)


# Agent Implementation


class RevenueAgent(BaseAgent[RevenueReport]):
    """
    Revenue Agent.

    Never mutates invoices. Reminders are log events only, emitted when the
    clinic has a WhatsApp number configured.
    """

    agent_type = "revenue"
    agent_name = "Revenue Agent"

    async def _run_internal(self, clinic_id: str) -> RevenueReport:
        """Execute revenue analysis."""
        invoices = await self.repository.get_invoices_by_clinic(clinic_id)
        clinic = await self.repository.get_clinic(clinic_id)
        now = self.clock()

        analysis = self.analyze_revenue(invoices)
        notified = self.notify_unpaid(invoices, clinic, now)

        self.logger.info(
            "revenue_analysis",
            clinic_id=clinic_id,
            total_amount=analysis.total_amount,
            collection_rate=analysis.collection_rate,
            notified=len(notified),
        )

        return RevenueReport(
            agent=self.agent_name,
            timestamp=now,
            clinic_id=clinic_id,
            next_run=self._next_run(now),
            analysis=analysis,
            notified=notified,
        )

    def analyze_revenue(self, invoices: list[Invoice]) -> RevenueAnalysis:
        """Paid/unpaid split and collection rate by amount."""
        paid = [i for i in invoices if i.paid]
        unpaid_count = len(invoices) - len(paid)

        total_amount = sum(i.amount or 0 for i in invoices)
        paid_amount = sum(i.amount or 0 for i in paid)
        unpaid_amount = total_amount - paid_amount

        if total_amount > 0:
            collection_rate = f"{paid_amount / total_amount * 100:.2f}"
        else:
            collection_rate = "0.00"

        if unpaid_count > self.config.unpaid_escalation_count:
            recommendation = "High number of unpaid invoices - escalate follow-up"
        else:
            recommendation = "Collection on track"

        return RevenueAnalysis(
            total_invoices=len(invoices),
            paid_invoices=len(paid),
            unpaid_invoices=unpaid_count,
            total_amount=f"{total_amount:.2f}",
            paid_amount=f"{paid_amount:.2f}",
            unpaid_amount=f"{unpaid_amount:.2f}",
            collection_rate=f"{collection_rate}%",
            recommendation=recommendation,
            action=f"Sending reminders to {unpaid_count} patients with unpaid invoices",
        )

    def notify_unpaid(
        self, invoices: list[Invoice], clinic: Optional[Clinic], now: datetime
    ) -> list[UnpaidNotification]:
        """One reminder record per unpaid invoice."""
        notifications = []

        for invoice in invoices:
            if invoice.paid:
                continue

            notification = UnpaidNotification(
                invoice_id=invoice.id,
                amount=invoice.amount,
                days_overdue=self.calculate_days_overdue(invoice.created_at, now),
            )

            if clinic and clinic.whatsapp:
                self.logger.info(
                    "whatsapp_notification_logged",
                    to=clinic.whatsapp,
                    message=f"Invoice {invoice.id} for ${invoice.amount} is pending. Please pay.",
                )

            notifications.append(notification)

        return notifications

    @staticmethod
    def calculate_days_overdue(created_at: Optional[datetime], now: datetime) -> int:
        """Whole days since the invoice was created; 0 when unknown."""
        if created_at is None:
            return 0
        elapsed = now - as_utc(created_at)
        return math.floor(elapsed.total_seconds() / 86400)
