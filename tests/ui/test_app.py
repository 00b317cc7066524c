"""UI tests for the DictanoteApp editor.

Drives the app with Textual's pilot against a scripted collaborator and an
in-memory store.
"""

import pytest
from textual.widgets import Input

from dictanote.models.ai_response import AppendResponse, InquireResponse, ReviewResponse
from dictanote.models.stored_document import StoredBlock
from dictanote.services.exceptions import CollaboratorError
from dictanote.services.session import EditSession
from dictanote.services.storage import InMemoryDocumentStore
from dictanote.tui.app import DictanoteApp
from dictanote.tui.widgets import BlockView, ConversationPanel, ReviewPanel, StatusPanel


SHORT_PARAGRAPH = "The project is going well."
REWRITTEN_PARAGRAPH = (
    "After reviewing the quarterly numbers with the whole team, we agreed that the "
    "launch must move to late spring and that two more engineers should join."
)


@pytest.fixture
def store():
    store = InMemoryDocumentStore()
    store.save("groceries", [StoredBlock(id="b1", content="- Buy milk"), StoredBlock(id="b2", content="- Bread")])
    return store


@pytest.fixture
def make_app(store, scripted_collaborator):
    """Build an app over the 'groceries' document with canned responses."""

    def make(*responses, prediction=""):
        collaborator = scripted_collaborator(*responses, prediction=prediction)
        session = EditSession.open(store, "groceries", collaborator, autosave_delay=60)
        return DictanoteApp(session, title="groceries"), collaborator

    return make


async def say(pilot, text: str) -> None:
    """Type an utterance into the input line, submit it and wait for the worker."""
    pilot.app.query_one("#utterance", Input).value = text
    await pilot.press("enter")
    await pilot.pause()
    await pilot.app.workers.wait_for_complete()
    await pilot.pause()


@pytest.mark.asyncio
async def test_app_shows_document_on_mount(make_app):
    """Test that blocks are rendered and side panels are hidden."""
    app, _ = make_app()

    async with app.run_test() as pilot:
        await pilot.pause()

        block_view = app.query_one(BlockView)
        assert [b.content for b in block_view.blocks] == ["- Buy milk", "- Bread"]
        assert not app.query_one(ReviewPanel).display
        assert not app.query_one(ConversationPanel).display
        assert "Ready" in app.query_one(StatusPanel).status_text().plain


@pytest.mark.asyncio
async def test_submit_appends_and_clears_input(make_app):
    app, collaborator = make_app(AppendResponse(content="- Buy eggs"))

    async with app.run_test() as pilot:
        await say(pilot, "and eggs")

        assert app.router.text == "- Buy milk\n\n- Bread\n\n- Buy eggs"
        assert len(app.query_one(BlockView).blocks) == 3
        assert app.query_one("#utterance", Input).value == ""
        assert collaborator.requests[0].utterance == "and eggs"
        assert "Unsaved changes" in app.query_one(StatusPanel).status_text().plain


@pytest.mark.asyncio
async def test_undo_and_redo_keys(make_app):
    app, _ = make_app(AppendResponse(content="- Buy eggs"))

    async with app.run_test() as pilot:
        await say(pilot, "and eggs")

        await pilot.press("ctrl+z")
        await pilot.pause()
        assert app.router.text == "- Buy milk\n\n- Bread"
        assert len(app.query_one(BlockView).blocks) == 2

        await pilot.press("ctrl+y")
        await pilot.pause()
        assert app.router.text.endswith("- Buy eggs")


@pytest.mark.asyncio
async def test_block_focus_navigation(make_app):
    """Test down/up move the block focus and escape returns to the whole note."""
    app, _ = make_app()

    async with app.run_test() as pilot:
        await pilot.press("down")
        await pilot.pause()
        assert app.focused_block_id == "b1"
        assert app.query_one(BlockView).focused_block_id == "b1"

        await pilot.press("down")
        await pilot.press("down")
        await pilot.pause()
        assert app.focused_block_id == "b2"

        await pilot.press("up")
        await pilot.pause()
        assert app.focused_block_id == "b1"

        await pilot.press("escape")
        await pilot.pause()
        assert app.focused_block_id is None
        assert app.query_one(BlockView).focused_block_id is None


@pytest.mark.asyncio
async def test_focused_block_gets_inline_request(make_app):
    app, collaborator = make_app(ReviewResponse(content="- Buy oat milk"))

    async with app.run_test() as pilot:
        await pilot.press("down")
        await say(pilot, "oat milk")

        request = collaborator.requests[0]
        assert request.inline
        assert request.context == "- Buy milk"
        assert app.router.document.get("b1").content == "- Buy oat milk"


@pytest.mark.asyncio
async def test_staged_rewrite_accepted(make_app, store):
    store.save("groceries", [StoredBlock(id="b1", content=SHORT_PARAGRAPH)])
    app, _ = make_app(ReviewResponse(content=REWRITTEN_PARAGRAPH))

    async with app.run_test() as pilot:
        await pilot.press("down")
        await say(pilot, "rewrite this")

        review_panel = app.query_one(ReviewPanel)
        assert review_panel.display
        assert review_panel.suggestion.block_id == "b1"
        assert app.router.text == SHORT_PARAGRAPH

        await pilot.press("ctrl+a")
        await pilot.pause()

        assert app.router.text == REWRITTEN_PARAGRAPH
        assert not review_panel.display


@pytest.mark.asyncio
async def test_staged_rewrite_rejected(make_app, store):
    store.save("groceries", [StoredBlock(id="b1", content=SHORT_PARAGRAPH)])
    app, _ = make_app(ReviewResponse(content=REWRITTEN_PARAGRAPH))

    async with app.run_test() as pilot:
        await pilot.press("down")
        await say(pilot, "rewrite this")

        await pilot.press("ctrl+r")
        await pilot.pause()

        assert app.router.text == SHORT_PARAGRAPH
        assert app.router.pending_suggestion is None
        assert not app.query_one(ReviewPanel).display


@pytest.mark.asyncio
async def test_clarifying_question_shows_conversation(make_app):
    """Test the conversation panel opens for a question and escape closes it."""
    app, _ = make_app(InquireResponse(content="Which shop?", user_input="go shopping"))

    async with app.run_test() as pilot:
        await say(pilot, "go shopping")

        panel = app.query_one(ConversationPanel)
        assert panel.display
        assert [turn.text for turn in panel.turns] == ["go shopping", "Which shop?"]
        assert app.router.text == "- Buy milk\n\n- Bread"

        await pilot.press("escape")
        await pilot.pause()

        assert not app.router.is_clarifying
        assert not panel.display


@pytest.mark.asyncio
async def test_collaborator_error_shown_in_status(make_app):
    app, _ = make_app(CollaboratorError("AI request failed: Connection refused"))

    async with app.run_test() as pilot:
        await say(pilot, "and eggs")

        assert app.error_message == "AI request failed: Connection refused"
        assert "✗ AI request failed" in app.query_one(StatusPanel).status_text().plain
        assert app.router.text == "- Buy milk\n\n- Bread"


@pytest.mark.asyncio
async def test_prediction_fills_empty_input(make_app):
    app, _ = make_app(prediction="Then pick up the laundry.")

    async with app.run_test() as pilot:
        await pilot.press("ctrl+n")
        await pilot.pause()
        await app.workers.wait_for_complete()
        await pilot.pause()

        assert app.query_one("#utterance", Input).value == "Then pick up the laundry."


@pytest.mark.asyncio
async def test_save_key_flushes(make_app, store):
    app, _ = make_app(AppendResponse(content="- Buy eggs"))
    saves_before = store.save_count

    async with app.run_test() as pilot:
        await say(pilot, "and eggs")
        await pilot.press("ctrl+s")
        await pilot.pause()

        assert store.save_count == saves_before + 1
        assert "Saved" in app.query_one(StatusPanel).status_text().plain

    assert [b.content for b in store.load("groceries")][-1] == "- Buy eggs"


@pytest.mark.asyncio
async def test_quit_saves_outstanding_changes(make_app, store):
    app, _ = make_app(AppendResponse(content="- Buy eggs"))

    async with app.run_test() as pilot:
        await say(pilot, "and eggs")
        await pilot.press("ctrl+q")

    assert [b.content for b in store.load("groceries")] == ["- Buy milk", "- Bread", "- Buy eggs"]
