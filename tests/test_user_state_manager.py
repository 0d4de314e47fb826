"""
Tests for per-user input state tracking
"""

from datetime import datetime, timedelta

import pytest

from src.core.state.user_state_manager import UserState, UserStateManager


class TestUserStateManager:
    """Test UserStateManager"""

    @pytest.fixture
    def manager(self):
        return UserStateManager(state_timeout_minutes=10)

    def test_default_state_is_idle(self, manager):
        assert manager.get_state(321) is UserState.IDLE
        assert not manager.is_waiting_for_words(321)
        assert not manager.is_waiting_for_import(321)

    def test_set_and_clear(self, manager):
        manager.set_state(321, UserState.WAITING_FOR_CUSTOM_WORDS)

        assert manager.is_waiting_for_words(321)
        assert not manager.is_waiting_for_words(123)

        manager.clear_state(321)
        assert manager.get_state(321) is UserState.IDLE

    def test_state_replaced(self, manager):
        manager.set_state(321, UserState.WAITING_FOR_CUSTOM_WORDS)
        manager.set_state(321, UserState.WAITING_FOR_IMPORT)

        assert manager.is_waiting_for_import(321)
        assert not manager.is_waiting_for_words(321)

    def test_expired_state(self, manager):
        manager.set_state(321, UserState.WAITING_FOR_IMPORT)
        manager.user_states[321].timestamp = datetime.now() - timedelta(minutes=11)

        assert manager.get_state(321) is UserState.IDLE
        assert 321 not in manager.user_states

    def test_clear_unknown_user(self, manager):
        manager.clear_state(999)

    @pytest.mark.asyncio
    async def test_start_and_stop(self, manager):
        await manager.start()
        assert manager._cleanup_task is not None

        await manager.stop()
        assert manager._cleanup_task.cancelled() or manager._cleanup_task.done()
