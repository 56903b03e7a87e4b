#!/usr/bin/env python3
"""Interactive operator console for the lab notification relay."""

import sys

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table


class BotAdminCLI:
    """Operator console for checking the bot and sending notifications."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        """Initialize operator CLI."""
        self.base_url = base_url
        self.console = Console()
        self.client = httpx.Client(timeout=30.0)

    def start(self) -> None:
        """Start the interactive console."""
        self.console.print(
            Panel.fit(
                "[bold blue]🏥 Lab Notification Relay - Operator Console[/bold blue]\n"
                "Commands: /info, /webhook [url], /send, /help, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]❌ Cannot reach the service at {self.base_url}.[/red]")
            return

        self.console.print("[green]✅ Connected to notification service[/green]\n")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]>[/bold cyan]").strip()
                command, _, argument = user_input.partition(" ")

                if command.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command == "/help":
                    self._show_help()
                elif command == "/info":
                    self._show_bot_info()
                elif command == "/webhook":
                    self._register_webhook(argument.strip() or None)
                elif command == "/send":
                    self._send_notification()
                elif command:
                    self.console.print("[yellow]Unknown command, try /help[/yellow]")

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]👋 Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _show_bot_info(self) -> None:
        """Show the bot identity reported by Telegram."""
        response = self._request("GET", "/telegram/bot")
        if response is None:
            return

        bot = response.json()
        self.console.print(
            Panel(
                f"[bold]@{bot.get('username')}[/bold] ({bot.get('first_name')})\nBot id: {bot.get('id')}",
                title="[green]🤖 Bot Connected[/green]",
                border_style="green",
            )
        )

        webhook = self._request("GET", "/telegram/webhook/info")
        if webhook is None:
            return

        info = webhook.json()
        if not info.get("url"):
            self.console.print("[yellow]No webhook registered yet, use /webhook[/yellow]")
            return
        self.console.print(f"Webhook: {info['url']} ({info.get('pending_update_count', 0)} pending updates)")
        if info.get("last_error_message"):
            self.console.print(f"[red]Last delivery error: {info['last_error_message']}[/red]")

    def _register_webhook(self, url: str | None) -> None:
        """Register the webhook URL with Telegram."""
        response = self._request("POST", "/telegram/webhook/register", json={"url": url})
        if response is None:
            return

        data = response.json()
        if data.get("success"):
            self.console.print(f"[green]✅ Webhook set to {data['url']}[/green]")
        else:
            self.console.print(f"[red]❌ Webhook setup failed: {data.get('description')}[/red]")

    def _send_notification(self) -> None:
        """Prompt for a notification and dispatch it."""
        payload = {
            "patient_id": Prompt.ask("Patient id"),
            "notification_type": Prompt.ask("Type", default="lab_result"),
            "message": Prompt.ask("Message"),
        }
        test_id = Prompt.ask("Test id (optional)", default="")
        if test_id:
            payload["test_id"] = test_id

        response = self._request("POST", "/notifications/send", json=payload, allowed=(200, 404))
        if response is None:
            return

        self._display_result(response.json())

    def _display_result(self, data: dict) -> None:
        """Display a dispatch result as a table."""
        table = Table(show_header=False, border_style="green" if data.get("success") else "red")
        for key in ["success", "notification_id", "telegram_message_id", "patient_name", "normalized_phone", "error"]:
            if data.get(key) is not None:
                table.add_row(key, str(data[key]))
        self.console.print(table)

    def _request(self, method: str, path: str, allowed: tuple[int, ...] = (200,), **kwargs) -> httpx.Response | None:
        """Call the service and report errors to the console."""
        try:
            response = self.client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            self.console.print(f"[red]❌ Connection error: {e}[/red]")
            return None

        if response.status_code not in allowed:
            self.console.print(f"[red]❌ API Error: {response.status_code} - {response.text}[/red]")
            return None
        return response

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /info - Show the bot identity and the registered webhook
• /webhook [url] - Register the webhook (defaults to TELEGRAM_WEBHOOK_URL)
• /send - Send a notification to a patient
• /quit or /exit - Exit the console

[bold]Patient Side:[/bold]
Patients link their chat by sending "/start +251911234567" to the bot.
Notifications to unlinked patients are recorded as failed.
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]❓ Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the operator CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

    cli = BotAdminCLI(base_url)
    cli.start()


if __name__ == "__main__":
    main()
