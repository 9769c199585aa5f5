"""Submit button with per-state title colors."""

from textual.widgets import Button


class SubmitButton(Button):
    """Button whose label color is chosen per control state.

    Only the "normal" state color is applied to the widget; other states
    are remembered so callers can read them back.
    """

    def __init__(self, label: str, **kwargs) -> None:
        super().__init__(label, **kwargs)
        self._title_colors: dict[str, str] = {}

    def title_color(self, for_state: str = "normal") -> str | None:
        """Get the title color set for a state."""
        return self._title_colors.get(for_state)

    def set_title_color(self, color: str, for_state: str = "normal") -> None:
        """Set the title color for a state."""
        self._title_colors[for_state] = color
        if for_state == "normal":
            self.styles.color = color
