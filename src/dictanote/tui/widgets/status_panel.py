"""StatusPanel widget for the processing indicator, sync state and inline errors."""

from typing import Optional

from rich.text import Text
from textual.widgets import Static


class StatusPanel(Static):
    """One-line status: AI activity, save state and the last error."""

    def __init__(self, *args, **kwargs):
        super().__init__("", *args, id="status-panel", **kwargs)
        self.processing = False
        self.syncing = False
        self.out_of_sync = False
        self.unsaved = False
        self.error_message: Optional[str] = None

    def on_mount(self) -> None:
        self.update_status()

    def set_state(
        self,
        processing: bool = False,
        syncing: bool = False,
        out_of_sync: bool = False,
        unsaved: bool = False,
        error_message: Optional[str] = None,
    ) -> None:
        """Replace the displayed state and redraw."""
        self.processing = processing
        self.syncing = syncing
        self.out_of_sync = out_of_sync
        self.unsaved = unsaved
        self.error_message = error_message
        self.update_status()

    def update_status(self) -> None:
        self.update(self.status_text())

    def status_text(self) -> Text:
        """Build the status line.

        Returns:
            Rich text such as "Thinking... | Saved"
        """
        text = Text()
        if self.processing:
            text.append("Thinking...", style="bold yellow")
        else:
            text.append("Ready", style="green")

        text.append(" | ")
        if self.syncing:
            text.append("Saving...", style="yellow")
        elif self.out_of_sync:
            text.append("⚠ Not saved", style="bold red")
        elif self.unsaved:
            text.append("Unsaved changes", style="yellow")
        else:
            text.append("Saved", style="dim")

        if self.error_message:
            text.append(" | ")
            text.append(f"✗ {self.error_message}", style="red")
        return text
