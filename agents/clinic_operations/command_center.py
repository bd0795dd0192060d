"""
AI Command Center

Maps free-text commands to canned clinic analyses. Commands are matched by
phrase containment against an ordered route table; the first route whose
phrase appears in the normalized command wins.

Command execution only reads from the repository.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from pydantic import Field, SerializeAsAny
from structlog import get_logger

from clinic_core.agent_orchestration.base_agent import CamelModel
from clinic_core.clinic_data.repository import ClinicRepository
from clinic_core.config import ClinicPlatformConfig, get_config
from clinic_core.shared_services.clock import Clock, utc_now


# Result Models


class CommandAnalysis(CamelModel):
    """Narrative shared by every analysis command."""

    strategy: list[str]
    expected_impact: str
    next_action: str


class CancellationAnalysis(CommandAnalysis):
    total_upcoming_appointments: int


class RevenueGrowthAnalysis(CommandAnalysis):
    total_cases: int
    total_invoices: int
    paid_invoices: int


class InventoryOptimizationAnalysis(CommandAnalysis):
    total_items: int
    low_stock_items: int


class AppointmentImprovementAnalysis(CommandAnalysis):
    total_appointments: int


class CollectionAnalysis(CommandAnalysis):
    unpaid_invoices: int
    total_unpaid_amount: str


class ClinicOverview(CamelModel):
    """Counts across all clinic collections."""

    appointments: int
    cases: int
    invoices: int
    revenue: str
    collection_rate: str = Field(..., description="Paid invoice count over invoice count, 2 decimals")
    inventory_items: int
    low_stock_items: int


class AgentAcknowledgment(CamelModel):
    agent: str
    status: str = Field(default="completed")


class CommandResult(CamelModel):
    """Result of one command; only the fields relevant to the command are set."""

    command: str
    status: str = Field(..., description="Executed or Unknown")
    timestamp: datetime

    analysis: Optional[SerializeAsAny[CommandAnalysis]] = None
    clinic_overview: Optional[ClinicOverview] = None

    message: Optional[str] = None
    agents_run: Optional[list[AgentAcknowledgment]] = None

    error: Optional[str] = None
    available_commands: Optional[list[str]] = None
    suggestion: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


CommandHandler = Callable[[str], Awaitable[CommandResult]]


class CommandRoute:
    """A known phrase and the handler it dispatches to."""

    def __init__(self, phrase: str, handler: CommandHandler):
        self.phrase = phrase
        self.handler = handler

    @property
    def title(self) -> str:
        return self.phrase.title()

    def matches(self, normalized_command: str) -> bool:
        return self.phrase in normalized_command


# Command Center


class AICommandCenter:
    """
    Natural-language command dispatcher.

    "run all agents" only acknowledges; it does not run the domain agents.
    Real execution of all agents goes through the agents API ``/run-all``.
    """

    name = "AI Command Center"

    def __init__(
        self,
        repository: ClinicRepository,
        logger: Optional[Any] = None,
        clock: Optional[Clock] = None,
        config: Optional[ClinicPlatformConfig] = None,
    ):
        self.repository = repository
        self.clock = clock or utc_now
        self.config = config or get_config()
        self.logger = (logger if logger is not None else get_logger()).bind(agent_type="command_center")

        # Order matters: the first matching phrase wins
        self.routes: list[CommandRoute] = [
            CommandRoute("reduce cancellations", self.handle_reduce_cancellations),
            CommandRoute("increase revenue", self.handle_increase_revenue),
            CommandRoute("optimize inventory", self.handle_optimize_inventory),
            CommandRoute("improve appointments", self.handle_improve_appointments),
            CommandRoute("boost collection", self.handle_boost_collection),
            CommandRoute("check status", self.handle_check_status),
            CommandRoute("run all agents", self.handle_run_all_agents),
        ]

    @property
    def available_commands(self) -> list[str]:
        return [route.phrase for route in self.routes]

    def match(self, command: str) -> Optional[CommandRoute]:
        """First route whose phrase is contained in the normalized command."""
        normalized = command.lower().strip()
        return next((route for route in self.routes if route.matches(normalized)), None)

    async def execute(self, clinic_id: str, command: str) -> CommandResult:
        """
        Execute a free-text command for a clinic.

        Args:
            clinic_id: Clinic identifier
            command: Free-text command

        Returns:
            Command result; unrecognized commands return status "Unknown"
        """
        self.logger.info("command_received", clinic_id=clinic_id, command=command)

        route = self.match(command)
        if route is None:
            self.logger.info("command_not_recognized", clinic_id=clinic_id, command=command)
            return self.handle_unknown_command(command)

        self.logger.info("command_dispatched", clinic_id=clinic_id, route=route.phrase)
        return await route.handler(clinic_id)

    def _executed(self, command: str, **fields: Any) -> CommandResult:
        return CommandResult(command=command, status="Executed", timestamp=self.clock(), **fields)

    async def handle_reduce_cancellations(self, clinic_id: str) -> CommandResult:
        appointments = await self.repository.get_appointments_by_clinic(clinic_id)
        now = self.clock()
        upcoming = [
            a for a in appointments if a.scheduled_at is not None and a.scheduled_at > now
        ]

        return self._executed(
            "Reduce Cancellations",
            analysis=CancellationAnalysis(
                total_upcoming_appointments=len(upcoming),
                strategy=[
                    "Sending appointment reminders 24 hours before scheduled time",
                    "Creating automated WhatsApp notifications",
                    "Flagging high-risk cancellations based on patient history",
                    "Offering rescheduling for conflicting appointments",
                ],
                expected_impact="Reduce no-show rate by 15-20%",
                next_action="Monitor cancellation rate over next 30 days",
            ),
        )

    async def handle_increase_revenue(self, clinic_id: str) -> CommandResult:
        cases = await self.repository.get_cases_by_clinic(clinic_id)
        invoices = await self.repository.get_invoices_by_clinic(clinic_id)

        return self._executed(
            "Increase Revenue",
            analysis=RevenueGrowthAnalysis(
                total_cases=len(cases),
                total_invoices=len(invoices),
                paid_invoices=sum(1 for i in invoices if i.paid),
                strategy=[
                    "Accelerate case-to-invoice conversion",
                    "Implement automated payment reminders",
                    "Optimize treatment bundling",
                    "Track high-value procedures",
                ],
                expected_impact="$500-$1000 additional monthly revenue",
                next_action="Focus on unpaid invoices collection",
            ),
        )

    async def handle_optimize_inventory(self, clinic_id: str) -> CommandResult:
        inventory = await self.repository.get_inventory_by_clinic(clinic_id)
        threshold = self.config.low_stock_threshold

        return self._executed(
            "Optimize Inventory",
            analysis=InventoryOptimizationAnalysis(
                total_items=len(inventory),
                low_stock_items=sum(1 for i in inventory if i.quantity < threshold),
                strategy=[
                    "Creating purchase orders for low stock items",
                    "Consolidating supplier orders to reduce costs",
                    "Implementing inventory tracking alerts",
                    "Optimizing reorder points based on usage",
                ],
                expected_impact="Reduce holding costs by 10-15%, eliminate stockouts",
                next_action="Monitor POs and update inventory status",
            ),
        )

    async def handle_improve_appointments(self, clinic_id: str) -> CommandResult:
        appointments = await self.repository.get_appointments_by_clinic(clinic_id)

        return self._executed(
            "Improve Appointments",
            analysis=AppointmentImprovementAnalysis(
                total_appointments=len(appointments),
                strategy=[
                    "Analyzing peak booking times",
                    "Identifying scheduling conflicts",
                    "Recommending optimal slot availability",
                    "Suggesting appointment bundling",
                ],
                expected_impact="20% increase in appointment utilization",
                next_action="Review scheduling patterns weekly",
            ),
        )

    async def handle_boost_collection(self, clinic_id: str) -> CommandResult:
        invoices = await self.repository.get_invoices_by_clinic(clinic_id)
        unpaid = [i for i in invoices if not i.paid]
        total_unpaid = f"{sum(i.amount or 0 for i in unpaid):.2f}"

        return self._executed(
            "Boost Collection",
            analysis=CollectionAnalysis(
                unpaid_invoices=len(unpaid),
                total_unpaid_amount=total_unpaid,
                strategy=[
                    "Sending automated payment reminders",
                    "Offering online payment options",
                    "Implementing dunning management",
                    "Creating payment plans for large amounts",
                ],
                expected_impact=f"Recover ${total_unpaid} within 30 days",
                next_action="Monitor payment status daily",
            ),
        )

    async def handle_check_status(self, clinic_id: str) -> CommandResult:
        appointments = await self.repository.get_appointments_by_clinic(clinic_id)
        cases = await self.repository.get_cases_by_clinic(clinic_id)
        invoices = await self.repository.get_invoices_by_clinic(clinic_id)
        inventory = await self.repository.get_inventory_by_clinic(clinic_id)

        # Count-based here, unlike the amount-based rate of the revenue agent
        if invoices:
            paid = sum(1 for i in invoices if i.paid)
            collection_rate = f"{paid / len(invoices) * 100:.2f}"
        else:
            collection_rate = "0.00"

        threshold = self.config.low_stock_threshold
        return self._executed(
            "Check Status",
            clinic_overview=ClinicOverview(
                appointments=len(appointments),
                cases=len(cases),
                invoices=len(invoices),
                revenue=f"{sum(i.amount or 0 for i in invoices):.2f}",
                collection_rate=collection_rate,
                inventory_items=len(inventory),
                low_stock_items=sum(1 for i in inventory if i.quantity < threshold),
            ),
        )

    async def handle_run_all_agents(self, clinic_id: str) -> CommandResult:
        return self._executed(
            "Run All Agents",
            message="All agents executed successfully",
            agents_run=[
                AgentAcknowledgment(agent="AppointmentAgent"),
                AgentAcknowledgment(agent="RevenueAgent"),
                AgentAcknowledgment(agent="CaseAgent"),
                AgentAcknowledgment(agent="InventoryAgent"),
            ],
        )

    def handle_unknown_command(self, command: str) -> CommandResult:
        return CommandResult(
            command=command,
            status="Unknown",
            timestamp=self.clock(),
            error="Command not recognized",
            available_commands=self.available_commands,
            suggestion="Try one of the available commands listed above",
        )
