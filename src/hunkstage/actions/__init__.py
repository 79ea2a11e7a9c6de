"""Git-mutating actions driven by the current selection."""

from hunkstage.actions.controller import ActionController, ActionResult

__all__ = ["ActionController", "ActionResult"]
