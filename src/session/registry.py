"""
Role bindings: which connection plays which side, and who is only watching.
"""

from typing import Optional

from src.core.shared_types import ROLE_PRIORITY, ConnectionId, Role


class SessionRegistry:
    """
    Holds the participant-to-role bindings of the (single) session.
    ---

    Invariants:
    * at most one connection holds each role
    * a connection holds at most one role
    * every connected id is known, role-holder or observer
    """

    def __init__(self) -> None:
        self._roles: dict[Role, Optional[ConnectionId]] = {
            role: None for role in ROLE_PRIORITY
        }
        # insertion order = connect order, used as fan-out order
        self._connections: dict[ConnectionId, Optional[Role]] = {}

    def assign_role(self, connection_id: ConnectionId) -> Optional[Role]:
        """Bind the first vacant role (first-mover before second-mover). None means observer."""
        if connection_id in self._connections:
            return self._connections[connection_id]

        role = next((r for r in ROLE_PRIORITY if self._roles[r] is None), None)
        if role is not None:
            self._roles[role] = connection_id
        self._connections[connection_id] = role
        return role

    def release(self, connection_id: ConnectionId) -> Optional[Role]:
        """Forget the connection. Returns the role it vacated (None for observers / unknown ids)."""
        role = self._connections.pop(connection_id, None)
        if role is not None:
            self._roles[role] = None
        return role

    def role_of(self, connection_id: ConnectionId) -> Optional[Role]:
        return self._connections.get(connection_id)

    def bindings(self) -> dict[Role, Optional[ConnectionId]]:
        """copy, so callers cannot mutate the registry"""
        return dict(self._roles)

    @property
    def connections(self) -> tuple[ConnectionId, ...]:
        return tuple(self._connections)

    @property
    def vacant_roles(self) -> tuple[Role, ...]:
        return tuple(role for role in ROLE_PRIORITY if self._roles[role] is None)

    @property
    def is_full(self) -> bool:
        return not self.vacant_roles

    def clear(self) -> None:
        self._connections.clear()
        self._roles = {role: None for role in ROLE_PRIORITY}
