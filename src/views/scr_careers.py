from dataclasses import dataclass
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import DataTable, Markdown

from views.base_screen import BaseScreen
from views.modal_job_application import JobApplicationModal


@dataclass(frozen=True)
class Position:
    department: str
    title: str
    location: str
    description: str
    employment: str = "Full-time"
    filled: bool = False


OPEN_POSITIONS: List[Position] = [
    Position("Executive Leadership", "General Manager", "Kampala",
             "Manage overall business operations in Uganda."),
    Position("Executive Leadership", "Human Resources Manager", "Kampala",
             "Handle recruitment, employee relations, and contracts.", filled=True),
    Position("Retail and Product Management", "Store Supervisor", "Multiple Locations",
             "Lead and supervise store operations, manage staff, and ensure "
             "excellent customer service standards."),
    Position("Retail and Product Management", "Inventory Officer", "Multiple Locations",
             "Maintain stock accuracy and ensure timely restocking."),
    Position("Retail and Product Management", "Sales Personnel", "Multiple Locations",
             "Provide exceptional customer service and drive sales growth."),
    Position("Retail and Product Management", "E-commerce Assistant", "Kampala",
             "Support online sales and customer engagement."),
    Position("Customer Service and Support", "Customer Service Representative", "Kampala",
             "Address customer inquiries via WhatsApp, email, and calls."),
    Position("Customer Service and Support", "Call Center Operator", "Kampala",
             "Answer customer calls and route orders to the right store."),
]


class CareersScreen(BaseScreen):
    """
    open positions, apply through the application wizard
    """

    BINDINGS = [
        Binding("p", "apply", "Apply", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-careers"):
            yield DataTable(id="table-positions")
            yield Markdown("", id="md-position")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Position", "Department", "Location", "Status")
        for position in OPEN_POSITIONS:
            table.add_row(
                position.title,
                position.department,
                position.location,
                "Filled" if position.filled else "Open",
            )
        self.show_position(0)

    def _selected(self) -> Optional[Position]:
        row = self.query_one(DataTable).cursor_row
        if row is None or not 0 <= row < len(OPEN_POSITIONS):
            return None
        return OPEN_POSITIONS[row]

    def show_position(self, row: int) -> None:
        if not 0 <= row < len(OPEN_POSITIONS):
            return
        position = OPEN_POSITIONS[row]
        md = f"### {position.title}\n\n"
        md += f"_{position.department} · {position.location} · {position.employment}_\n\n"
        md += position.description
        if position.filled:
            md += "\n\n**This position has been filled.**"
        self.query_one("#md-position", Markdown).update(md)

    @on(DataTable.RowHighlighted, "#table-positions")
    def handle_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self.show_position(event.cursor_row)

    @on(DataTable.RowSelected, "#table-positions")
    def handle_row_selected(self) -> None:
        self.action_apply()

    @work()
    async def action_apply(self) -> None:
        position = self._selected()
        if position is None:
            return
        if position.filled:
            self.notify("This position has been filled.", severity="warning")
            return
        if not self.signed_in:
            self.notify("Please sign in to apply", severity="error")
            return

        submitted = await self.app.push_screen_wait(
            JobApplicationModal(position.title, email=self.app.state.user.email or "")
        )
        if submitted:
            self.notify("Application submitted successfully!")
