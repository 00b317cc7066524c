"""BlockView widget showing the note's blocks with the focused one highlighted."""

from typing import Optional, Sequence

from rich.text import Text
from textual.widgets import Static

from dictanote.models.document import Block


class BlockView(Static):
    """Static rendering of the document, one paragraph per block."""

    def __init__(self, *args, **kwargs):
        super().__init__("", *args, id="block-view", **kwargs)
        self.blocks: tuple[Block, ...] = ()
        self.focused_block_id: Optional[str] = None

    def show_blocks(self, blocks: Sequence[Block], focused_block_id: Optional[str] = None) -> None:
        """Redraw the blocks.

        Args:
            blocks: Blocks in document order
            focused_block_id: Block to highlight (None = whole-document focus)
        """
        self.blocks = tuple(blocks)
        self.focused_block_id = focused_block_id
        self.update(self.render_blocks())

    def render_blocks(self) -> Text:
        text = Text()
        for index, block in enumerate(self.blocks):
            if index:
                text.append("\n\n")

            focused = block.block_id == self.focused_block_id
            text.append("▶ " if focused else "  ", style="bold cyan")

            if block.is_empty:
                text.append("(empty)", style="dim italic")
                continue

            content = block.content.replace("\n", "\n  ")
            text.append(content, style="reverse" if focused else "")
        return text
