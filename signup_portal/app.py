"""Signup Portal: a reactive sign-up form demo.

Main Textual application.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path

from textual.app import App
from textual.binding import Binding

from signup_portal.screens.signup import SignupScreen
from signup_portal.services.config import ConfigManager
from signup_portal.services.network import NetworkSimulator
from signup_portal.services.reactive import LoopScheduler, set_main_scheduler
from signup_portal.services.validation import SignupValidator
from signup_portal.styles import BASE_CSS


@dataclass
class Services:
    """Application service container for dependency injection."""

    config: ConfigManager
    network: NetworkSimulator
    validator: SignupValidator

    @classmethod
    def create(cls, config_dir: Path | None = None) -> "Services":
        """Wire up all services with proper dependencies.

        Args:
            config_dir: Configuration directory (defaults to ~/.config/signup-portal)

        Returns:
            Services container with all dependencies injected
        """
        config = ConfigManager(config_dir)
        network = NetworkSimulator(config.config)
        return cls(config=config, network=network, validator=SignupValidator())


class SignupApp(App):
    """The main Signup Portal application."""

    TITLE = "Signup Portal"
    CSS = BASE_CSS + """
    Screen {
        background: $background;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, services: Services | None = None, **kwargs):
        """Initialize the app with injected services.

        Args:
            services: Service container (created if not provided)
            **kwargs: Additional Textual app arguments
        """
        super().__init__(**kwargs)
        self.services = services or Services.create()

    def on_mount(self) -> None:
        """Make the app loop the main scheduler and show the form."""
        set_main_scheduler(LoopScheduler(asyncio.get_running_loop()))
        self.push_screen(SignupScreen(
            self.services.config.config,
            self.services.network,
            self.services.validator,
        ))


def main():
    """Run the Signup Portal application."""
    SignupApp().run()


if __name__ == "__main__":
    main()
