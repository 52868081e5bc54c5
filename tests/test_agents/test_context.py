"""Tests for context aggregation."""

import pytest

from app.agents.context import (
    TRUNCATION_MARKER,
    find_stale_contacts,
    gather_context,
)
from app.models.task import TaskStatus
from tests.conftest import NOW, TODAY

pytestmark = pytest.mark.asyncio


class TestGatherContext:
    """Tests for gather_context."""

    async def test_sections_populated(
        self, db_session, workspace, task_factory, rfp_factory, proposal_factory
    ):
        """Each category lands in its own section."""
        await task_factory(workspace.id, title="Late invoice", due_in_days=-3)
        await task_factory(workspace.id, title="Board memo", due_in_days=1)
        await task_factory(workspace.id, title="Quarterly plan", due_in_days=5)
        await task_factory(workspace.id, title="Far off", due_in_days=30)
        await task_factory(workspace.id, title="Already done", due_in_days=-1, status=TaskStatus.DONE)
        await rfp_factory(workspace.id, title="Transit RFP", due_in_days=4)
        await proposal_factory(workspace.id, title="Arts grant")

        context = await gather_context(db_session, workspace.id, NOW)

        assert [t.title for t in context.overdue_tasks] == ["Late invoice"]
        assert [t.title for t in context.due_tomorrow] == ["Board memo"]
        assert [t.title for t in context.upcoming_tasks] == ["Board memo", "Quarterly plan"]
        assert [r.title for r in context.rfp_deadlines] == ["Transit RFP"]
        assert [p.title for p in context.proposals] == ["Arts grant"]
        assert context.stale_contacts == []
        assert context.workspace_name == "Acme Consulting"

    async def test_scoped_to_workspace(
        self, db_session, workspace, workspace_factory, task_factory, rfp_factory, contact_factory
    ):
        """Rows from another workspace never appear."""
        other = await workspace_factory("Other Co")
        await task_factory(other.id, title="Foreign overdue", due_in_days=-2)
        await rfp_factory(other.id, title="Foreign RFP", due_in_days=1)
        await contact_factory(other.id, full_name="Foreign Contact", days_since_contact=90)
        await task_factory(workspace.id, title="Mine", due_in_days=-2)

        context = await gather_context(db_session, workspace.id, NOW, include_stale_contacts=True)
        text = context.render()

        assert [t.title for t in context.overdue_tasks] == ["Mine"]
        assert context.rfp_deadlines == []
        assert context.stale_contacts == []
        assert "Foreign" not in text

    async def test_render_is_bounded(self, db_session, workspace, task_factory):
        """Rendered text never exceeds max_chars and says when it was cut."""
        for i in range(10):
            await task_factory(workspace.id, title=f"Overdue task number {i} " + "x" * 80, due_in_days=-1)

        context = await gather_context(db_session, workspace.id, NOW)
        text = context.render(max_chars=300)

        assert len(text) <= 300
        assert text.endswith(TRUNCATION_MARKER)

    async def test_section_limit(self, db_session, workspace, task_factory):
        """Each section is capped at section_limit items."""
        for i in range(6):
            await task_factory(workspace.id, title=f"Overdue {i}", due_in_days=-(i + 1))

        context = await gather_context(db_session, workspace.id, NOW, section_limit=4)

        assert len(context.overdue_tasks) == 4
        # Oldest first
        assert context.overdue_tasks[0].title == "Overdue 5"

    async def test_empty_workspace_renders(self, db_session, workspace):
        """A workspace with nothing going on still renders a short block."""
        context = await gather_context(db_session, workspace.id, NOW)

        assert context.is_empty
        text = context.render()
        assert TODAY.isoformat() in text
        assert "No open tasks" in text

    async def test_read_only(self, db_session, workspace, task_factory):
        """Gathering context writes nothing."""
        await task_factory(workspace.id, due_in_days=-1)
        await db_session.flush()

        await gather_context(db_session, workspace.id, NOW, include_stale_contacts=True)

        assert not db_session.new
        assert not db_session.dirty


class TestFindStaleContacts:
    """Tests for find_stale_contacts."""

    async def test_never_contacted_first_then_oldest(self, db_session, workspace, contact_factory):
        """Null last-contact dates sort first, then oldest; recent contacts are excluded."""
        await contact_factory(workspace.id, full_name="Recent", days_since_contact=5)
        await contact_factory(workspace.id, full_name="Old", days_since_contact=45)
        await contact_factory(workspace.id, full_name="Ancient", days_since_contact=200)
        await contact_factory(workspace.id, full_name="Never", days_since_contact=None)

        contacts = await find_stale_contacts(db_session, workspace.id, TODAY, 30, limit=10)

        assert [c.full_name for c in contacts] == ["Never", "Ancient", "Old"]

    async def test_boundary_is_exclusive(self, db_session, workspace, contact_factory):
        """A contact exactly at the window edge is not stale yet."""
        await contact_factory(workspace.id, full_name="Edge", days_since_contact=30)
        await contact_factory(workspace.id, full_name="Past", days_since_contact=31)

        contacts = await find_stale_contacts(db_session, workspace.id, TODAY, 30)

        assert [c.full_name for c in contacts] == ["Past"]
