from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from backend.errors import error_message
from utils.pure import validate_email
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

MIN_PASSWORD_LENGTH = 6


class LoginScreen(BaseScreen):
    """
    Sign in, sign up or continue with Google.
    Dismisses with True once a session is active.
    """

    BINDINGS = [("escape", "cancel", "Back")]

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Sign in", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Sign in", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="you@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Back", id="btn-cancel")
                        yield Button("Sign in", id="btn-login", variant="primary")

            with TabPane("Create account", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Email")
                    yield Input(placeholder="you@example.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Create account", id="btn-reg", variant="primary")

            with TabPane("Google", id="tab-oauth"):
                with Vertical(id="div-oauth"):
                    yield Label(
                        "Open the Google sign-in page, then paste the code from the "
                        "redirect URL below."
                    )
                    yield Button("Continue with Google", id="btn-oauth-start")
                    yield Label("Authorization code")
                    yield Input(placeholder="code", id="input-oauth-code")
                    yield Button("Complete sign in", id="btn-oauth-finish", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    def action_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value.strip()

        if not email or not pwd:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        try:
            user = await self.app.state.auth.sign_in(email, pwd)
        except Exception as exc:
            self.notify(
                error_message(exc, "An error occurred during authentication"),
                severity="error",
            )
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        self.notify(f"Successfully signed in as {user.email if user else email}!")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value.strip()

        if not validate_email(email):
            self.notify("Please enter a valid email address.", severity="error")
            return
        if len(pwd) < MIN_PASSWORD_LENGTH:
            self.notify(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
                severity="error",
            )
            return

        try:
            user = await self.app.state.auth.sign_up(email, pwd)
        except Exception as exc:
            self.notify(error_message(exc, "Sign up failed."), severity="error")
            return

        if user is not None:
            self.notify("Account created, you are signed in.")
            self.dismiss(True)
            return

        await self.app.push_screen_wait(
            DialogModal("Check your email to confirm your account, then sign in.")
        )
        self.get_child_by_type(TabbedContent).active = "tab-login"
        self.query_one("#input-login-email", Input).value = email
        self.query_one("#input-login-pwd", Input).focus()

    @on(Button.Pressed, "#btn-oauth-start")
    @work(exclusive=True)
    async def handle_oauth_start(self) -> None:
        try:
            url = await self.app.state.auth.start_oauth("google")
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to sign in with Google"), severity="error"
            )
            return
        self.app.open_url(url)
        self.notify("Google sign-in opened in your browser.")
        self.query_one("#input-oauth-code").focus()

    @on(Button.Pressed, "#btn-oauth-finish")
    @work(exclusive=True)
    async def handle_oauth_finish(self) -> None:
        code = self.query_one("#input-oauth-code", Input).value.strip()
        if not code:
            self.notify("Paste the authorization code first.", severity="error")
            return
        try:
            user = await self.app.state.auth.complete_oauth(code)
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to sign in with Google"), severity="error"
            )
            return
        self.notify(f"Successfully signed in as {user.email if user else 'Google user'}!")
        self.dismiss(True)
