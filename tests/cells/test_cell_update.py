"""Tests for the generic update() entry point."""

import pytest as _pytest

import nestmap
import nestmap.cells as cells
import nestmap.errors as errors
import nestmap.maps as maps


class TestCellUpdate:
    """update() dispatches on the kind of cell."""

    def test_atom_update_is_swap(self) -> None:
        """For an Atom, update returns the new value."""
        atom = cells.Atom(maps.Map())

        result = cells.update(atom, maps.assoc, "k", "v")

        assert result == {"k": "v"}
        assert atom.deref() is result

    def test_agent_update_is_send(self) -> None:
        """For an Agent, update queues the action and returns the agent."""
        with cells.Agent(1) as agent:
            assert cells.update(agent, lambda n, d: n + d, 2) is agent
            agent.wait(timeout=5.0)

            assert agent.deref() == 3

    @_pytest.mark.parametrize("not_a_cell", [None, 1, maps.Map(), [1]])
    def test_rejects_non_cells(self, not_a_cell: object) -> None:
        """Anything else is an argument type error."""
        with _pytest.raises(errors.ArgumentTypeError):
            cells.update(not_a_cell, lambda v: v)  # type: ignore[arg-type]

    def test_exported_at_top_level(self) -> None:
        """The package root exposes the cell update."""
        assert nestmap.update is cells.update
