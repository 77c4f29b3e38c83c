from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.events import ScreenResume
from textual.widgets import DataTable, Label

from backend import crud
from backend.errors import error_message
from backend.models import JobApplication
from backend.storage import cv_download_url
from utils.messages import AuthChangedMessage
from views.base_screen import BaseScreen


class ApplicationsScreen(BaseScreen):
    """
    job applications sent from the signed-in email address
    """

    BINDINGS = [
        Binding("enter", "open_cv", "Open CV", show=True),
        Binding("r", "reload", "Reload", show=True),
    ]

    def __init__(self):
        super().__init__()
        self._applications: List[JobApplication] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("", id="label-applications-status")
        yield DataTable(id="table-applications")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Position", "Submitted", "Status")

    @on(ScreenResume)
    @on(AuthChangedMessage)
    def action_reload(self) -> None:
        self.load_applications()

    @work(exclusive=True)
    async def load_applications(self) -> None:
        table = self.query_one(DataTable)
        status = self.query_one("#label-applications-status", Label)
        table.clear()
        self._applications = []

        if not self.signed_in:
            status.update("Please sign in to see your applications")
            return
        email = self.app.state.user.email
        if not email:
            status.update("Your account has no email address")
            return

        try:
            self._applications = await crud.list_user_applications(
                self.app.state.backend, email
            )
        except Exception as exc:
            status.update("")
            self.notify(
                error_message(exc, "Failed to load applications."), severity="error"
            )
            return

        status.update(
            f"{len(self._applications)} application(s)"
            if self._applications
            else "You have not applied for any position yet"
        )
        for application in self._applications:
            submitted = (
                application.created_at.strftime("%Y-%m-%d %H:%M")
                if application.created_at
                else "-"
            )
            table.add_row(application.job_title, submitted, application.status.title())

    @on(DataTable.RowSelected, "#table-applications")
    def handle_row_selected(self) -> None:
        self.action_open_cv()

    @work()
    async def action_open_cv(self) -> None:
        row = self.query_one(DataTable).cursor_row
        if row is None or not 0 <= row < len(self._applications):
            return
        application = self._applications[row]
        try:
            url = await cv_download_url(self.app.state.backend, application.cv_path)
        except Exception as exc:
            self.notify(error_message(exc, "Could not open the CV."), severity="error")
            return
        if not url:
            self.notify("Could not open the CV.", severity="error")
            return
        self.app.open_url(url)
        self.notify("CV link opened, it expires in a minute.")
