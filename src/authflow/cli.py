"""Interactive console front end for the sign-in flow.

Presentation only: every decision is made by AuthFlowController and the
session shown is whatever SessionObserver last received.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from authflow.auth import (
    AttemptPhase,
    AuthFlowController,
    SessionObserver,
    get_identity_provider,
)

if TYPE_CHECKING:
    from authflow.auth import IdentityProviderProtocol, Session

logger = logging.getLogger(__name__)

console = Console()

_METHODS = {
    "1": "password",
    "2": "phone",
    "3": "google",
    "4": "guest",
    "q": "quit",
}


async def _ask(prompt: str, *, password: bool = False, default: str = "") -> str:
    """Prompt without blocking the event loop."""
    return await asyncio.to_thread(
        Prompt.ask, prompt, console=console, password=password, default=default
    )


async def _prompt_for_oauth_token(start_url: str) -> str:
    """Let the user complete OAuth in a browser and paste the callback token."""
    console.print(
        Panel(
            f"Open this URL to continue with Google:\n[link]{start_url}[/link]",
            title="Federated sign-in",
        )
    )
    return (await _ask("Paste the token from the callback URL")).strip()


def _show_error(controller: AuthFlowController) -> None:
    if controller.phase is AttemptPhase.FAILED and controller.error_message:
        console.print(f"[red]{controller.error_message}[/red]")


def _show_session(session: Session) -> None:
    console.print(
        Panel(
            f"[bold]Welcome back![/bold]\n{session.display_identifier}",
            title="Signed in",
            subtitle=str(session.method),
        )
    )


async def _phone_flow(controller: AuthFlowController) -> None:
    phone_number = (await _ask("Phone number (include country code, e.g. +1)")).strip()
    await controller.send_phone_code(phone_number)
    _show_error(controller)

    while controller.ticket is not None:
        console.print(
            f"Enter the code sent to {controller.ticket.bound_phone_number} "
            "(leave blank to go back)"
        )
        code = (await _ask("Verification code")).strip()
        if not code:
            controller.abandon_phone_challenge()
            return
        await controller.submit_code(code)
        _show_error(controller)


async def run_console(provider: IdentityProviderProtocol | None = None) -> None:
    """Drive sign-in and sign-out until the user quits."""
    if provider is None:
        provider = get_identity_provider(federated_token_source=_prompt_for_oauth_token)

    with SessionObserver(provider) as observer:
        with console.status("Checking for an existing session..."):
            await observer.wait_resolved()

        controller = AuthFlowController(provider)
        while True:
            session = observer.session
            if session is not None:
                _show_session(session)
                choice = await _ask("Sign out?", default="y")
                if choice.lower() != "y":
                    return
                await controller.sign_out()
                _show_error(controller)
                continue

            console.print(
                "[bold]Sign in:[/bold] "
                "1) email  2) phone  3) Google  4) guest  q) quit"
            )
            method = _METHODS.get((await _ask("Method", default="1")).strip().lower())
            if method == "quit":
                return
            if method == "password":
                email = (await _ask("Email address")).strip()
                password = await _ask("Password", password=True)
                await controller.sign_in_with_password(email, password)
            elif method == "phone":
                await _phone_flow(controller)
                continue
            elif method == "google":
                await controller.sign_in_with_federated_provider()
            elif method == "guest":
                await controller.sign_in_anonymously()
            else:
                console.print("[yellow]Choose 1-4 or q.[/yellow]")
                continue
            _show_error(controller)
