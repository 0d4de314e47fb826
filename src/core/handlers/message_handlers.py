"""
Message handlers for the flashcard bot
"""

import logging

from telegram import ReplyKeyboardRemove, Update
from telegram.ext import ContextTypes

from ...utils import parse_inline_keyboard_data, parse_word_list
from ..errors import ProgressImportError

logger = logging.getLogger(__name__)

HINT_TEXT = (
    "📝 Choose what to study:\n\n"
    "/page <n> - One page\n"
    "/all - All pages\n"
    "/custom - Your own word list\n"
    "/help - All commands"
)


class MessageHandlers:
    """Handles text messages, documents and callback queries"""

    def __init__(
        self,
        safe_reply_callback,
        handle_study_callback,
        start_custom_session_callback,
        handle_translate_callback,
        handle_clear_callback,
        state_manager=None,
        session_manager=None,
    ):
        self._safe_reply = safe_reply_callback
        self._handle_study_callback = handle_study_callback
        self._start_custom_session = start_custom_session_callback
        self._handle_translate_callback = handle_translate_callback
        self._handle_clear_callback = handle_clear_callback
        self.state_manager = state_manager
        self.session_manager = session_manager

    async def handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle text messages"""
        if not update.message or not update.effective_user:
            return

        text = update.message.text or ""
        telegram_id = update.effective_user.id

        if self.state_manager and self.state_manager.is_waiting_for_words(telegram_id):
            self.state_manager.clear_state(telegram_id)

            words = parse_word_list(text)
            if not words:
                await self._safe_reply(
                    update,
                    "❌ Please enter some words, or use /custom again.",
                    reply_markup=ReplyKeyboardRemove(),
                )
                return

            await self._start_custom_session(update, words)
            return

        if self.state_manager and self.state_manager.is_waiting_for_import(telegram_id):
            # Accept pasted JSON as well as a file
            await self._import_progress(update, text)
            return

        await self._safe_reply(update, HINT_TEXT, reply_markup=ReplyKeyboardRemove())

    async def handle_document(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle uploaded files (progress import)"""
        if not update.message or not update.effective_user or not update.message.document:
            return

        telegram_id = update.effective_user.id
        if not self.state_manager or not self.state_manager.is_waiting_for_import(telegram_id):
            await self._safe_reply(update, "📎 To import progress, use /import first")
            return

        try:
            telegram_file = await update.message.document.get_file()
            payload = bytes(await telegram_file.download_as_bytearray())
        except Exception as e:
            logger.error(f"Error downloading import file for user {telegram_id}: {e}")
            await self._safe_reply(update, "❌ Could not download the file")
            return

        await self._import_progress(update, payload)

    async def _import_progress(self, update: Update, payload: str | bytes):
        telegram_id = update.effective_user.id
        self.state_manager.clear_state(telegram_id)

        progress = self.session_manager.get_progress(telegram_id)
        try:
            count = progress.import_data(payload)
        except ProgressImportError as e:
            logger.warning(f"Rejected progress import for user {telegram_id}: {e}")
            await self._safe_reply(update, f"❌ Import failed: {e}")
            return

        await self._safe_reply(update, f"✅ Imported progress for {count} words")

    async def handle_callback_query(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ):
        """Handle callback queries from inline keyboards"""
        if not update.callback_query or not update.effective_user:
            return

        query = update.callback_query
        await query.answer()

        if not query.data or not query.data.startswith("{"):
            logger.warning(f"Unhandled callback query: {query.data}")
            return

        data = parse_inline_keyboard_data(query.data)
        action = data.get("action")

        if action == "tr":
            await self._handle_translate_callback(query, data)
        elif action == "clear":
            await self._handle_clear_callback(query, data)
        else:
            await self._handle_study_callback(query)
