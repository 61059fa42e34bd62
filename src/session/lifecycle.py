"""Reacts to connections coming and going."""

import logging
from typing import Optional

from src.core.shared_types import ConnectionId, Role
from src.session.registry import SessionRegistry

logger = logging.getLogger(__name__)


class ConnectionLifecycleManager:
    """
    Roles are vacated (never handed to somebody else) when their holder leaves.
    The game is not paused: the next connection claims the vacant role and continues the game.
    """

    def __init__(self, registry: SessionRegistry) -> None:
        self.registry = registry

    def connect(self, connection_id: ConnectionId) -> Optional[Role]:
        role = self.registry.assign_role(connection_id)
        if role is None:
            logger.info("Observer joined: %s", connection_id)
        else:
            logger.info("Player assigned %s: %s", role, connection_id)
        return role

    def disconnect(self, connection_id: ConnectionId) -> Optional[Role]:
        """Returns the vacated role, if the connection held one."""
        role = self.registry.release(connection_id)
        if role is None:
            logger.info("Observer disconnected: %s", connection_id)
        else:
            logger.info("Player disconnected, %s is vacant: %s", role, connection_id)
        return role
