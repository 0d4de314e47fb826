"""
Tests for user authorization and bot wiring
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import FakePageSource, MemoryStore
from telegram import Update, User
from telegram.error import BadRequest
from telegram.ext import CallbackQueryHandler, CommandHandler, ContextTypes

from src.bot_handler import BotHandler
from src.config import Settings


def make_handler(allowed_users: str = "") -> BotHandler:
    settings = Settings(telegram_bot_token="test_token", allowed_users=allowed_users)
    return BotHandler(settings, kv_store=MemoryStore())


class TestUserAuthorization:
    """Test user authorization functionality"""

    def test_is_user_authorized_empty_list(self):
        """Test authorization when no users are configured - should disallow all"""
        handler = make_handler("")

        assert not handler._is_user_authorized(321)
        assert not handler._is_user_authorized(123)

    def test_is_user_authorized_with_allowed_users(self):
        """Test authorization with specific allowed users"""
        handler = make_handler("321,123")

        assert handler._is_user_authorized(321)
        assert handler._is_user_authorized(123)

        assert not handler._is_user_authorized(111)
        assert not handler._is_user_authorized(222)

    @pytest.mark.asyncio
    async def test_check_authorization_allowed_user(self):
        """Test authorization check for allowed user"""
        handler = make_handler("321")

        update = MagicMock(spec=Update)
        update.effective_user = User(id=321, is_bot=False, first_name="Test")
        context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)
        handler._safe_reply = AsyncMock()

        assert await handler._check_authorization(update, context) is True
        handler._safe_reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_check_authorization_denied_user(self):
        """Test authorization check for denied user"""
        handler = make_handler("321")

        update = MagicMock(spec=Update)
        update.effective_user = User(id=999, is_bot=False, first_name="Unauthorized")
        context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)
        handler._safe_reply = AsyncMock()

        assert await handler._check_authorization(update, context) is False

        handler._safe_reply.assert_called_once()
        assert "do not have access" in handler._safe_reply.call_args[0][1]

    @pytest.mark.asyncio
    async def test_authorization_decorator_allowed_user(self):
        """Test authorization decorator with allowed user"""
        handler = make_handler("321")

        update = MagicMock(spec=Update)
        update.effective_user = User(id=321, is_bot=False, first_name="Test")
        context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)
        handler._safe_reply = AsyncMock()

        mock_handler = AsyncMock()
        await handler.require_authorization(mock_handler)(update, context)

        mock_handler.assert_called_once_with(update, context)

    @pytest.mark.asyncio
    async def test_authorization_decorator_denied_user(self):
        """Test authorization decorator with denied user"""
        handler = make_handler("321")

        update = MagicMock(spec=Update)
        update.effective_user = User(id=999, is_bot=False, first_name="Unauthorized")
        context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)
        handler._safe_reply = AsyncMock()

        mock_handler = AsyncMock()
        await handler.require_authorization(mock_handler)(update, context)

        mock_handler.assert_not_called()
        handler._safe_reply.assert_called_once()

    def test_config_parse_allowed_users_with_spaces(self):
        """Test parsing allowed users with spaces"""
        settings = Settings(telegram_bot_token="test_token", allowed_users="321, 123 , 456")
        assert settings.allowed_users_list == [321, 123, 456]

    def test_config_defaults(self):
        settings = Settings(telegram_bot_token="test_token")

        assert settings.allowed_users_list == []
        assert settings.total_pages == 25
        assert settings.recent_capacity == 6
        assert settings.recycle_low_water_mark == 10
        assert settings.prefetch_threshold == 20
        assert settings.prefetch_batch_size == 2
        assert settings.initial_pages == 2


class TestBotWiring:
    """Test handler registration and message helpers"""

    def test_all_commands_registered(self):
        handler = make_handler("321")
        handler.application = MagicMock()

        handler._add_handlers()

        registered = [call.args[0] for call in handler.application.add_handler.call_args_list]
        commands = set()
        for item in registered:
            if isinstance(item, CommandHandler):
                commands.update(item.commands)

        assert commands == {
            "start", "help", "page", "all", "custom", "next", "prev", "flip",
            "known", "unknown", "review", "stats", "export", "import", "clear",
            "words", "translate",
        }
        assert any(isinstance(item, CallbackQueryHandler) for item in registered)
        handler.application.add_error_handler.assert_called_once()

    @pytest.mark.asyncio
    async def test_safe_reply_to_update_and_message(self):
        handler = make_handler()
        update = MagicMock()
        update.message.reply_text = AsyncMock(return_value="sent")

        assert await handler._safe_reply(update, "hi") == "sent"
        update.message.reply_text.assert_awaited_once_with("hi")

        message = MagicMock(spec=["reply_text"])
        message.reply_text = AsyncMock(return_value="sent")
        assert await handler._safe_reply(message, "hi") == "sent"

    @pytest.mark.asyncio
    async def test_safe_edit_query_and_message(self):
        handler = make_handler()

        query = MagicMock(spec=["edit_message_text"])
        query.edit_message_text = AsyncMock()
        await handler._safe_edit(query, "text")
        query.edit_message_text.assert_awaited_once_with("text")

        message = MagicMock(spec=["edit_text"])
        message.edit_text = AsyncMock()
        await handler._safe_edit(message, "text")
        message.edit_text.assert_awaited_once_with("text")

    @pytest.mark.asyncio
    async def test_safe_edit_retries_without_html(self):
        handler = make_handler()
        query = MagicMock(spec=["edit_message_text"])
        query.edit_message_text = AsyncMock(side_effect=[BadRequest("Can't parse entities"), "ok"])

        result = await handler._safe_edit(query, "<b>Hund</b>", parse_mode="HTML")

        assert result == "ok"
        assert query.edit_message_text.await_args_list[1].args == ("Hund",)

    @pytest.mark.asyncio
    async def test_safe_reply_to_callback_update(self):
        handler = make_handler()
        update = MagicMock()
        update.message = None
        update.effective_message.reply_text = AsyncMock(return_value="sent")

        assert await handler._safe_reply(update, "hi") == "sent"
        update.effective_message.reply_text.assert_awaited_once_with("hi")

    @pytest.mark.asyncio
    async def test_shutdown_closes_clients(self):
        page_source = MagicMock()
        page_source.close = AsyncMock()
        translator = MagicMock()
        translator.close = AsyncMock()
        settings = Settings(telegram_bot_token="test_token")
        handler = BotHandler(
            settings, kv_store=MemoryStore(), page_source=page_source, translator=translator
        )

        await handler.shutdown()

        page_source.close.assert_awaited_once()
        translator.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_without_closable_source(self):
        translator = MagicMock()
        translator.close = AsyncMock()
        settings = Settings(telegram_bot_token="test_token")
        handler = BotHandler(
            settings, kv_store=MemoryStore(), page_source=FakePageSource(), translator=translator
        )

        await handler.shutdown()

        translator.close.assert_awaited_once()
