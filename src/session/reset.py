"""Restarting the game from the starting position."""

import logging

from src.core.exceptions import NotAParticipantError
from src.core.shared_types import ConnectionId, Role
from src.session.registry import SessionRegistry
from src.session.store import GameStateStore

logger = logging.getLogger(__name__)


class ResetCoordinator:
    def __init__(self, registry: SessionRegistry, store: GameStateStore) -> None:
        self.registry = registry
        self.store = store

    def request_reset(self, connection_id: ConnectionId) -> Role:
        """Only role-holders may reset. Role bindings survive the reset."""
        role = self.registry.role_of(connection_id)
        if role is None:
            raise NotAParticipantError("Observers cannot reset the game.")

        self.store.reset()
        logger.info("Game reset by %s: %s", role, connection_id)
        return role
