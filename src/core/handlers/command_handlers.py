"""
Command handlers for the flashcard bot
"""

import io
import logging

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, ReplyKeyboardRemove, Update
from telegram.ext import ContextTypes

from ...config import Settings
from ...text_parser import extract_words
from ...translator import Translator
from ...utils import (
    create_inline_keyboard_data,
    format_progress_stats,
    format_translation,
    parse_word_list,
    safe_int,
)
from ..errors import FetchFailure
from ..models import CardStatus, StudyMode
from ..pages.page_source import PageSource
from ..session.session_manager import SessionManager
from ..state.user_state_manager import UserState, UserStateManager

logger = logging.getLogger(__name__)

MAX_WORD_BUTTONS = 45


def command_argument_text(update: Update) -> str:
    """Everything after the command word, keeping line breaks"""
    text = update.message.text if update.message and update.message.text else ""
    _, _, rest = text.partition(" ")
    if not rest and "\n" in text:
        _, _, rest = text.partition("\n")
    return rest.strip()


class CommandHandlers:
    """Handles all bot commands"""

    def __init__(
        self,
        settings: Settings,
        session_manager: SessionManager,
        page_source: PageSource,
        translator: Translator,
        safe_reply_callback,
        safe_edit_callback,
        state_manager: UserStateManager | None = None,
    ):
        self.settings = settings
        self.session_manager = session_manager
        self.page_source = page_source
        self.translator = translator
        self._safe_reply = safe_reply_callback
        self._safe_edit = safe_edit_callback
        self.state_manager = state_manager

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /start command"""
        if not update.effective_user:
            return

        user = update.effective_user
        welcome_message = f"""🎉 Hello, {user.first_name}!

Welcome to the German vocabulary flashcards! 🇩🇪

🔤 <b>How to start:</b>
/page &lt;n&gt; - Study one page of the word list
/all - Study all pages in random order
/custom - Study only the words you send me

Use /help for all commands."""

        await self._safe_reply(
            update,
            welcome_message,
            parse_mode="HTML",
            reply_markup=ReplyKeyboardRemove(),
        )

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /help command"""
        if not update.effective_user:
            return

        help_message = f"""📖 <b>Commands</b>

📚 <b>Study modes:</b>
/page &lt;1-{self.settings.total_pages}&gt; - One page of the word list
/all - Every page, loaded while you study
/custom &lt;words&gt; - Only matching words (comma or line separated)

🃏 <b>Cards:</b>
/next - Next card
/prev - Previous card
/flip - Show the other side
/known /unknown /review - Mark the current card

📊 <b>Progress:</b>
/stats - Statistics for this session
/export - Download progress as JSON
/import - Restore progress from a JSON file
/clear - Erase all progress

🔎 <b>Words:</b>
/words &lt;n&gt; - Word list of a page
/translate &lt;word&gt; - Translate a word"""

        await self._safe_reply(
            update, help_message, parse_mode="HTML", reply_markup=ReplyKeyboardRemove()
        )

    async def page_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /page command"""
        if not update.effective_user:
            return

        page = safe_int(context.args[0]) if context.args else 0
        if not 1 <= page <= self.settings.total_pages:
            await self._safe_reply(
                update, f"❌ Please select a page: /page &lt;1-{self.settings.total_pages}&gt;",
                parse_mode="HTML",
            )
            return

        await self.session_manager.start_study_session(update, StudyMode.PAGE, {"page": page})

    async def all_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /all command"""
        if not update.effective_user:
            return

        await self.session_manager.start_study_session(update, StudyMode.ALL)

    async def custom_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /custom command"""
        if not update.effective_user:
            return

        words = parse_word_list(command_argument_text(update))
        if not words:
            if self.state_manager:
                self.state_manager.set_state(
                    update.effective_user.id, UserState.WAITING_FOR_CUSTOM_WORDS
                )
            await self._safe_reply(
                update,
                "📝 Send me the words to study, one per line or separated by commas",
            )
            return

        await self.start_custom_session(update, words)

    async def start_custom_session(self, update: Update, words: list[str]):
        await self.session_manager.start_study_session(
            update, StudyMode.CUSTOM, {"words": words}
        )

    async def next_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /next command"""
        if not update.effective_user:
            return
        await self.session_manager.show_next(update, update.effective_user.id)

    async def prev_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /prev command"""
        if not update.effective_user:
            return
        await self.session_manager.show_previous(update, update.effective_user.id)

    async def flip_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /flip command"""
        if not update.effective_user:
            return
        await self.session_manager.flip_card(update, update.effective_user.id)

    async def known_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        await self._mark(update, CardStatus.KNOWN)

    async def unknown_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        await self._mark(update, CardStatus.UNKNOWN)

    async def review_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        await self._mark(update, CardStatus.REVIEW)

    async def _mark(self, update: Update, status: CardStatus):
        if not update.effective_user:
            return
        await self.session_manager.mark_card(update, update.effective_user.id, status)

    async def stats_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /stats command"""
        if not update.effective_user:
            return

        user_id = update.effective_user.id
        session = self.session_manager.get_session(user_id)
        if session:
            text = format_progress_stats(session.stats(), duration=session.duration)
        else:
            progress = self.session_manager.get_progress(user_id)
            text = format_progress_stats(progress.stats(progress.statuses.keys()))

        await self._safe_reply(update, text)

    async def export_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /export command"""
        if not update.effective_user or not update.message:
            return

        user_id = update.effective_user.id
        progress = self.session_manager.get_progress(user_id)
        session = self.session_manager.get_session(user_id)
        total_cards = session.total_cards if session else 0

        payload = progress.export_json(total_cards).encode("utf-8")
        try:
            await update.message.reply_document(
                document=io.BytesIO(payload),
                filename=progress.export_filename(),
                caption="✅ Progress exported successfully!",
            )
        except Exception as e:
            logger.error(f"Error exporting progress for user {user_id}: {e}")
            await self._safe_reply(update, "❌ Could not send the export file")

    async def import_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /import command"""
        if not update.effective_user:
            return

        if self.state_manager:
            self.state_manager.set_state(update.effective_user.id, UserState.WAITING_FOR_IMPORT)
        await self._safe_reply(update, "📥 Send me a progress JSON file exported with /export")

    async def clear_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /clear command"""
        if not update.effective_user:
            return

        keyboard = [
            [
                InlineKeyboardButton(
                    "🗑️ Yes, clear", callback_data=create_inline_keyboard_data("clear", confirm=1)
                ),
                InlineKeyboardButton(
                    "Cancel", callback_data=create_inline_keyboard_data("clear", confirm=0)
                ),
            ]
        ]
        await self._safe_reply(
            update,
            "⚠️ Are you sure you want to clear all progress? This cannot be undone.",
            reply_markup=InlineKeyboardMarkup(keyboard),
        )

    async def handle_clear_callback(self, query, data: dict):
        """Handle the answer to the clear confirmation"""
        if not data.get("confirm"):
            await self._safe_edit(query, "👍 Progress kept")
            return

        self.session_manager.get_progress(query.from_user.id).clear()
        await self._safe_edit(query, "✅ Progress cleared successfully!")

    async def words_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /words command"""
        if not update.effective_user:
            return

        page = safe_int(context.args[0]) if context.args else 0
        if page < 1:
            await self._safe_reply(update, "❌ Usage: /words &lt;page&gt;", parse_mode="HTML")
            return

        folder = self.settings.word_list_folder
        words = await self._page_words(page)
        if words is None:
            await self._safe_reply(update, f"❌ Could not load words from {folder}/pages/{page}")
            return

        if not words:
            await self._safe_reply(update, "Words will appear here once the page has text")
            return

        # Buttons carry the word's position, the word itself may not fit in 64 bytes
        buttons = [
            InlineKeyboardButton(
                word, callback_data=create_inline_keyboard_data("tr", page=page, index=index)
            )
            for index, word in enumerate(words[:MAX_WORD_BUTTONS])
        ]
        keyboard = [buttons[i : i + 3] for i in range(0, len(buttons), 3)]

        message = f"📄 <b>{folder}-{page}</b>: {len(words)} words"
        if len(words) > MAX_WORD_BUTTONS:
            message += f" (first {MAX_WORD_BUTTONS} shown)"
        await self._safe_reply(
            update, message, parse_mode="HTML", reply_markup=InlineKeyboardMarkup(keyboard)
        )

    async def _page_words(self, page: int) -> list[str] | None:
        """Distinct words of a text page, None if the page cannot be loaded"""
        try:
            text = await self.page_source.fetch_word_page(page)
        except FetchFailure as e:
            logger.error(f"Error loading words from page {page}: {e}")
            return None

        if text is None:
            return None

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        return extract_words(" ".join(lines))

    async def translate_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /translate command"""
        if not update.effective_user:
            return

        word = " ".join(context.args).strip() if context.args else ""
        if not word:
            await self._safe_reply(update, "❌ Usage: /translate &lt;word&gt;", parse_mode="HTML")
            return

        await self._reply_translation(update, word)

    async def handle_translate_callback(self, query, data: dict):
        """Handle a translate button from a word list or a card"""
        if "page" in data:
            word = await self._word_on_page(data.get("page"), data.get("index"))
        else:
            word = self._word_of_card(query.from_user.id, data.get("card"))

        if not word:
            logger.warning(f"Translate button no longer matches a word: {data}")
            await self._safe_reply(query.message, "❌ This word is no longer available")
            return

        await self._reply_translation(query.message, word)

    async def _word_on_page(self, page, index) -> str | None:
        page = safe_int(page)
        index = safe_int(index, default=-1)
        words = await self._page_words(page) if page > 0 else None
        if not words or not 0 <= index < len(words):
            return None
        return words[index]

    def _word_of_card(self, user_id: int, card_index) -> str | None:
        session = self.session_manager.get_session(user_id)
        if not session or not session.pool:
            return None
        cards = session.pool.all_cards
        index = safe_int(card_index, default=-1)
        if not 0 <= index < len(cards):
            return None
        return cards[index].display_word

    async def _reply_translation(self, target, word: str):
        processing_msg = await self._safe_reply(target, f"🔍 Translating \"{word}\"...")
        result = await self.translator.translate(word)
        text = format_translation(result)

        if processing_msg is not None:
            await self._safe_edit(processing_msg, text, parse_mode="HTML")
        else:
            await self._safe_reply(target, text, parse_mode="HTML")
