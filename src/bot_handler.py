"""
Telegram front end for the flashcard trainer
"""

import asyncio
import logging
import re
from functools import wraps

from telegram import BotCommand, Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from .config import get_settings
from .core.handlers.command_handlers import CommandHandlers
from .core.handlers.message_handlers import MessageHandlers
from .core.pages.page_source import create_page_source
from .core.session.session_manager import SessionManager
from .core.state.user_state_manager import UserStateManager
from .database import init_db
from .translator import Translator

logger = logging.getLogger(__name__)


class BotHandler:
    """Main Telegram bot handler"""

    def __init__(self, settings=None, kv_store=None, page_source=None, translator=None):
        self.settings = settings or get_settings()
        self.kv_store = kv_store or init_db(self._database_path())
        self.page_source = page_source or create_page_source(
            self.settings.pages_base,
            self.settings.word_list_folder,
            timeout=self.settings.api_timeout,
        )
        self.translator = translator or Translator(self.settings)
        self.state_manager = UserStateManager(state_timeout_minutes=10)

        self.application = None

        self.session_manager = SessionManager(
            settings=self.settings,
            kv_store=self.kv_store,
            page_source=self.page_source,
            safe_reply_callback=self._safe_reply,
            safe_edit_callback=self._safe_edit,
        )

        self.command_handlers = CommandHandlers(
            settings=self.settings,
            session_manager=self.session_manager,
            page_source=self.page_source,
            translator=self.translator,
            safe_reply_callback=self._safe_reply,
            safe_edit_callback=self._safe_edit,
            state_manager=self.state_manager,
        )

        self.message_handlers = MessageHandlers(
            safe_reply_callback=self._safe_reply,
            handle_study_callback=self.session_manager.handle_study_callback,
            start_custom_session_callback=self.command_handlers.start_custom_session,
            handle_translate_callback=self.command_handlers.handle_translate_callback,
            handle_clear_callback=self.command_handlers.handle_clear_callback,
            state_manager=self.state_manager,
            session_manager=self.session_manager,
        )

    def _database_path(self) -> str:
        url = self.settings.database_url
        if url.startswith("sqlite:///"):
            return url.replace("sqlite:///", "")
        return "data/flashcards.db"

    def _is_user_authorized(self, user_id: int) -> bool:
        """Check if user is authorized to use the bot"""
        if not self.settings.allowed_users_list:
            return False
        return user_id in self.settings.allowed_users_list

    async def _check_authorization(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> bool:
        """Check if user is authorized and send unauthorized message if not"""
        user_id = update.effective_user.id

        if not self._is_user_authorized(user_id):
            await self._safe_reply(
                update,
                "❌ You do not have access to this bot. Please contact the administrator.",
            )
            logger.warning(f"Unauthorized access attempt from user {user_id}")
            return False

        return True

    def require_authorization(self, func):
        """Decorator to require authorization for handler functions"""

        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE):
            if not await self._check_authorization(update, context):
                return
            return await func(update, context)

        return wrapper

    def _build_application(self) -> Application:
        return (
            Application.builder()
            .token(self.settings.telegram_bot_token)
            .read_timeout(30)
            .write_timeout(30)
            .connect_timeout(30)
            .pool_timeout(30)
            .build()
        )

    async def start(self):
        """Start the bot and poll until cancelled"""
        logger.info("Starting flashcard bot...")

        await self.state_manager.start()

        try:
            self.application = self._build_application()
            self._add_handlers()

            async with self.application:
                await self.setup_bot_menu(self.application)
                await self.application.start()
                await self.application.updater.start_polling(
                    poll_interval=self.settings.polling_interval,
                    timeout=10,
                    bootstrap_retries=3,
                )
                logger.info("Bot started successfully!")
                try:
                    await asyncio.Event().wait()
                finally:
                    await self.application.updater.stop()
                    await self.application.stop()
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Finish sessions and close the HTTP clients"""
        # Let pending page loads settle before the clients go away
        await self.session_manager.close_all()
        await self.state_manager.stop()
        await self.translator.close()

        close_source = getattr(self.page_source, "close", None)
        if close_source is not None:
            await close_source()
        logger.info("Bot stopped")

    def _add_handlers(self):
        """Add command and message handlers"""
        app = self.application
        commands = {
            "start": self.command_handlers.start_command,
            "help": self.command_handlers.help_command,
            "page": self.command_handlers.page_command,
            "all": self.command_handlers.all_command,
            "custom": self.command_handlers.custom_command,
            "next": self.command_handlers.next_command,
            "prev": self.command_handlers.prev_command,
            "flip": self.command_handlers.flip_command,
            "known": self.command_handlers.known_command,
            "unknown": self.command_handlers.unknown_command,
            "review": self.command_handlers.review_command,
            "stats": self.command_handlers.stats_command,
            "export": self.command_handlers.export_command,
            "import": self.command_handlers.import_command,
            "clear": self.command_handlers.clear_command,
            "words": self.command_handlers.words_command,
            "translate": self.command_handlers.translate_command,
        }

        for name, callback in commands.items():
            app.add_handler(CommandHandler(name, self.require_authorization(callback)))

        app.add_handler(
            MessageHandler(
                filters.TEXT & ~filters.COMMAND,
                self.require_authorization(self.message_handlers.handle_message),
            )
        )
        app.add_handler(
            MessageHandler(
                filters.Document.ALL,
                self.require_authorization(self.message_handlers.handle_document),
            )
        )
        app.add_handler(
            CallbackQueryHandler(
                self.require_authorization(self.message_handlers.handle_callback_query)
            )
        )

        app.add_error_handler(self.error_handler)

    async def setup_bot_menu(self, application):
        """Setup bot menu with commands for better UX"""
        commands = [
            BotCommand("page", "📄 Study one page"),
            BotCommand("all", "📚 Study all pages"),
            BotCommand("custom", "📝 Study your own word list"),
            BotCommand("next", "➡️ Next card"),
            BotCommand("prev", "⬅️ Previous card"),
            BotCommand("flip", "🔄 Flip the card"),
            BotCommand("stats", "📊 Show statistics"),
            BotCommand("export", "💾 Export progress"),
            BotCommand("words", "🔎 Word list of a page"),
            BotCommand("help", "❓ Help"),
        ]

        try:
            await application.bot.set_my_commands(commands)
            logger.info("Bot menu commands set successfully")
        except TelegramError as e:
            logger.error(f"Failed to set bot menu commands: {e}")

    async def _safe_reply(self, update_or_message, text: str, **kwargs):
        """Safely send a reply message"""
        try:
            if hasattr(update_or_message, "effective_user"):
                # It's an Update object; callback query updates carry no message
                target = update_or_message.message or update_or_message.effective_message
                message = await target.reply_text(text, **kwargs)
            else:
                # It's a Message object
                message = await update_or_message.reply_text(text, **kwargs)
            return message
        except TelegramError as e:
            logger.error(f"Error sending reply: {e}")
            logger.error(f"Failed text: {text[:100]}...")
            return None

    async def _safe_edit(self, query_or_message, text: str, **kwargs):
        """Safely edit a callback query message or a sent message"""
        try:
            if hasattr(query_or_message, "edit_message_text"):
                return await query_or_message.edit_message_text(text, **kwargs)
            return await query_or_message.edit_text(text, **kwargs)
        except TelegramError as e:
            logger.error(f"Error editing message: {e}")

            if kwargs.get("parse_mode") == "HTML":
                # Retry as plain text in case the markup was rejected
                plain_text = re.sub(r"<[^>]+>", "", text)
                plain_kwargs = {k: v for k, v in kwargs.items() if k != "parse_mode"}
                try:
                    if hasattr(query_or_message, "edit_message_text"):
                        return await query_or_message.edit_message_text(plain_text, **plain_kwargs)
                    return await query_or_message.edit_text(plain_text, **plain_kwargs)
                except TelegramError as e2:
                    logger.error(f"Edit without HTML also failed: {e2}")
            return None

    async def error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        """Handle errors"""
        logger.error(f"Update {update} caused error {context.error}")
