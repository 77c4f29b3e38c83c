from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, ContentSwitcher, Input, Label, Markdown, TextArea

from backend.errors import ValidationError, error_message
from backend.storage import FileUpload, submit_job_application
from utils.forms import STEP_TITLES, STEPS, ApplicationDraft
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal

# input id -> draft attribute
TEXT_FIELDS = {
    "input-full-name": "full_name",
    "input-email": "email",
    "input-phone": "phone",
    "input-linkedin": "linkedin",
}
AREA_FIELDS = {
    "area-cover-letter": "cover_letter",
    "area-experience": "experience",
}
ERROR_FIELDS = ["full_name", "email", "phone", "cv", "cover_letter", "experience"]


class JobApplicationModal(ModalScreen[bool]):
    """
    Four step application wizard: personal details, CV and cover letter,
    experience, then a review before submitting.
    Return True once the application is recorded.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, job_title: str, email: str = "") -> None:
        super().__init__()
        self.draft = ApplicationDraft(job_title=job_title, email=email)

    def compose(self) -> ComposeResult:
        with Vertical(id="div-job-application"):
            yield Label(f"Apply for {self.draft.job_title}", id="label-job-title")
            yield Label("", id="label-step")
            with ContentSwitcher(initial="personal", id="switcher-steps"):
                with VerticalScroll(id="personal"):
                    yield Label("Full Name")
                    yield Input(id="input-full-name")
                    yield Label("", id="error-full_name", classes="field-error")
                    yield Label("Email")
                    yield Input(self.draft.email, id="input-email")
                    yield Label("", id="error-email", classes="field-error")
                    yield Label("Phone Number")
                    yield Input(placeholder="+256 7XX XXX XXX", id="input-phone")
                    yield Label("", id="error-phone", classes="field-error")
                    yield Label("LinkedIn Profile (optional)")
                    yield Input(id="input-linkedin")
                with VerticalScroll(id="resume"):
                    yield Label("CV file (PDF, DOC or DOCX, max 10MB)")
                    with Horizontal(id="hort-cv"):
                        yield Input(placeholder="~/Documents/cv.pdf", id="input-cv-path")
                        yield Button("Attach", id="btn-attach-cv")
                    yield Label("", id="label-cv-name")
                    yield Label("", id="error-cv", classes="field-error")
                    yield Label("Cover Letter")
                    yield TextArea(id="area-cover-letter")
                    yield Label("", id="error-cover_letter", classes="field-error")
                with VerticalScroll(id="questions"):
                    yield Label("Relevant Experience")
                    yield TextArea(id="area-experience")
                    yield Label("", id="error-experience", classes="field-error")
                with VerticalScroll(id="review"):
                    yield Markdown("", id="md-review")
            with Horizontal(id="hort-wizard-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button("Back", id="btn-back")
                yield Button("Next", id="btn-next", variant="primary")
                yield Button("Submit Application", id="btn-submit", variant="success")

    def on_mount(self):
        self.render_step()
        self.query_one("#input-full-name").focus()

    def render_step(self) -> None:
        draft = self.draft
        self.query_one(ContentSwitcher).current = draft.step
        self.query_one("#label-step", Label).update(
            f"Step {draft.step_index + 1} of {len(STEPS)}: {STEP_TITLES[draft.step]}"
        )
        self.query_one("#btn-back").display = draft.step_index > 0
        self.query_one("#btn-next").display = not draft.is_last_step
        self.query_one("#btn-submit").display = draft.is_last_step

        for name in ERROR_FIELDS:
            self.query_one(f"#error-{name}", Label).update(draft.errors.get(name, ""))
        self.query_one("#label-cv-name", Label).update(
            f"Attached: {draft.cv.name}" if draft.cv else "No file attached"
        )
        if draft.step == "review":
            self.query_one("#md-review", Markdown).update(self.review_markdown())

    def review_markdown(self) -> str:
        draft = self.draft
        rows = [
            ["Position", draft.job_title],
            ["Full Name", draft.full_name],
            ["Email", draft.email],
            ["Phone", draft.phone],
            ["LinkedIn", draft.linkedin or "-"],
            ["CV", draft.cv.name if draft.cv else "-"],
        ]
        md = "### Review your application\n\n"
        md += generate_markdown_table(["", ""], rows, ["l", "l"])
        md += f"\n\n**Cover letter**\n\n{draft.cover_letter}"
        md += f"\n\n**Experience**\n\n{draft.experience}"
        return md

    @on(Input.Changed)
    def handle_input_changed(self, event: Input.Changed) -> None:
        attr = TEXT_FIELDS.get(event.input.id or "")
        if attr:
            setattr(self.draft, attr, event.value)

    @on(TextArea.Changed)
    def handle_area_changed(self, event: TextArea.Changed) -> None:
        attr = AREA_FIELDS.get(event.text_area.id or "")
        if attr:
            setattr(self.draft, attr, event.text_area.text)

    @on(Button.Pressed, "#btn-attach-cv")
    @on(Input.Submitted, "#input-cv-path")
    def handle_attach_cv(self) -> None:
        path = self.query_one("#input-cv-path", Input).value.strip()
        if not path:
            self.draft.errors["cv"] = "Please upload your CV"
            self.render_step()
            return
        try:
            upload = FileUpload.from_path(path)
        except OSError as exc:
            self.draft.errors["cv"] = f"Cannot read file: {exc.strerror or exc}"
            self.render_step()
            return

        if self.draft.attach_cv(upload):
            self.notify(f"{upload.name} attached")
        self.render_step()

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if not self.draft.next_step():
            self.notify("Please fix the highlighted fields.", severity="error")
        self.render_step()

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self.draft.previous_step()
        self.render_step()

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        draft = self.draft
        errors = draft.validate_all()
        if errors:
            # go back to the first step with a problem
            for step in STEPS:
                if draft.validate_step(step):
                    draft.step = step
                    break
            self.render_step()
            self.notify("Please fix the highlighted fields.", severity="error")
            return

        submit = self.query_one("#btn-submit", Button)
        submit.disabled = True
        submit.label = "Submitting..."
        try:
            await submit_job_application(
                self.app.state.backend,
                job_title=draft.job_title,
                email=draft.email.strip(),
                phone=draft.phone.strip(),
                cv=draft.cv,
                cover_letter=draft.cover_letter.strip(),
            )
        except ValidationError as exc:
            draft.errors[exc.field] = exc.message
            draft.step = "resume"
            self.render_step()
            self.notify(exc.message, severity="error")
            return
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to submit application. Please try again."),
                severity="error",
            )
            return
        finally:
            submit.disabled = False
            submit.label = "Submit Application"

        await self.app.push_screen_wait(
            DialogModal(
                f"Thank you for applying to the {draft.job_title} position. We'll "
                "review your application and get back to you via email within "
                "5-7 business days.",
                primary_text="Close",
                tone="positive",
            )
        )
        self.dismiss(True)

    @on(Button.Pressed, "#btn-cancel")
    def action_cancel(self) -> None:
        self.dismiss(False)
