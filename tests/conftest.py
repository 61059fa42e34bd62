"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures required for testing multiple layers.
"""

import pytest

from src.rules.chess_engine import ChessRulesEngine
from src.services.session_service import SessionService
from src.session.game_session import GameSession


@pytest.fixture
def engine() -> ChessRulesEngine:
    """Classical chess from the standard starting position."""
    return ChessRulesEngine()


@pytest.fixture
def session(engine: ChessRulesEngine) -> GameSession:
    """A fresh session: nobody connected, starting position."""
    return GameSession.create(engine)


@pytest.fixture
def service(session: GameSession) -> SessionService:
    return SessionService(session)
