"""
Unit tests for the assignment table.

Run with: pytest tests/test_assignments.py
"""

import pytest

from planner.assignments import NodeAssignments
from planner.types import UnknownId, NOT_ASSIGNED


class TestBuilder:
    """Test building assignment tables."""

    def test_empty_builder(self):
        """A builder without assignments gives an empty table."""
        assignments = NodeAssignments.builder().build()

        assert assignments.size() == 0
        assert len(assignments) == 0

    def test_chained_assign(self):
        """Each assign call adds to the earlier ones."""
        assignments = NodeAssignments.builder().assign(1, "a").assign(2, "b").build()

        assert assignments.size() == 2
        assert assignments.task_node_name(1) == "a"
        assert assignments.task_node_name(2) == "b"

    def test_overwrite(self):
        """Assigning the same id again replaces the node."""
        assignments = NodeAssignments.builder().assign(1, "a").assign(1, "b").build()

        assert assignments.task_node_name(1) == "b"
        assert assignments.size() == 1

    def test_unassign(self):
        """Unassigned entries report the marker."""
        assignments = NodeAssignments.builder().assign(1, "a").unassign(1).build()

        assert assignments.task_node_name(1) == NOT_ASSIGNED
        assert 1 in assignments

    def test_assign_none(self):
        """None is recorded as unassigned."""
        assignments = NodeAssignments.builder().assign(1, None).build()

        assert assignments.task_node_name(1) == NOT_ASSIGNED

    def test_build_does_not_share_state(self):
        """Tables built earlier do not change when the builder goes on."""
        builder = NodeAssignments.builder().assign(1, "a")
        first = builder.build()
        builder.assign(2, "b")

        assert first.size() == 1
        assert builder.build().size() == 2

    def test_to_builder(self):
        """Reopening a table leaves the original untouched."""
        original = NodeAssignments.builder().assign(1, "a").build()

        extended = original.to_builder().assign(1, "b").assign(2, "c").build()

        assert original.task_node_name(1) == "a"
        assert 2 not in original
        assert extended.task_node_name(1) == "b"
        assert extended.size() == 2


class TestLookup:
    """Test assignment lookups."""

    def setup_method(self):
        """Create a table with one assigned and one unassigned task."""
        self.assignments = (
            NodeAssignments.builder()
            .assign(1, "slave1")
            .assign(2, NOT_ASSIGNED)
            .build()
        )

    def test_unknown_id(self):
        """Ids never recorded raise UnknownId."""
        with pytest.raises(UnknownId) as excinfo:
            self.assignments.task_node_name(3)

        assert excinfo.value.task_id == 3

    def test_unknown_id_is_key_error(self):
        """UnknownId can be handled as a KeyError."""
        with pytest.raises(KeyError):
            self.assignments.task_node_name(3)

    def test_unknown_differs_from_unassigned(self):
        """Unassigned tasks are known, unknown ones are not."""
        assert 2 in self.assignments
        assert 3 not in self.assignments
        assert self.assignments.assigned_node(2) is None
        assert self.assignments.assigned_node(3) is None

    def test_is_assigned(self):
        """Only tasks with a node are assigned."""
        assert self.assignments.is_assigned(1)
        assert not self.assignments.is_assigned(2)
        assert not self.assignments.is_assigned(3)

    def test_items(self):
        """Items yield the marker for unassigned tasks."""
        assert list(self.assignments.items()) == [(1, "slave1"), (2, NOT_ASSIGNED)]

    def test_read_only(self):
        """Built tables cannot be changed through their mapping."""
        with pytest.raises(TypeError):
            self.assignments._entries[5] = "x"

    def test_equality(self):
        """Tables with the same entries are equal."""
        same = NodeAssignments.builder().assign(2, None).assign(1, "slave1").build()

        assert same == self.assignments
        assert NodeAssignments.empty() != self.assignments


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
