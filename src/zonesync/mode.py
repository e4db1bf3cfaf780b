"""Draw / modify interaction mode for the map drawing collaborator."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class InteractionMode:
    """Mutually exclusive draw and modify toggles. Both start off."""

    draw_enabled: bool = False
    modify_enabled: bool = False

    def toggle_draw(self) -> bool:
        """Flip draw mode; turning it on turns modify mode off."""
        self.draw_enabled = not self.draw_enabled
        if self.draw_enabled:
            self.modify_enabled = False
        return self.draw_enabled

    def toggle_modify(self) -> bool:
        """Flip modify mode; turning it on turns draw mode off."""
        self.modify_enabled = not self.modify_enabled
        if self.modify_enabled:
            self.draw_enabled = False
        return self.modify_enabled

    def permits(self, edit: str) -> bool:
        """Whether the drawing widget may emit an edit of this kind.

        Args:
            edit: "insert", "modify" or "delete".
        """
        if edit == "insert":
            return self.draw_enabled
        if edit in ("modify", "delete"):
            return self.modify_enabled
        return False

    def to_dict(self) -> dict:
        return {"draw_enabled": self.draw_enabled, "modify_enabled": self.modify_enabled}
