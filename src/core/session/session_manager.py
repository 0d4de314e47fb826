"""
Session management for the flashcard bot
"""

import logging

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update

from ...config import Settings
from ...text_parser import quick_links
from ...utils import (
    create_inline_keyboard_data,
    format_card_back,
    format_card_front,
    parse_inline_keyboard_data,
)
from ..database.repositories.kv_repository import KeyValueRepository
from ..errors import CardsExhausted
from ..models import CardStatus, StudyMode
from ..pages.page_source import PageSource
from ..progress.progress_store import PROGRESS_KEY, ProgressStore
from .study_session import StudySession

logger = logging.getLogger(__name__)

NO_SESSION_TEXT = "❌ No active session. Start one with /page, /all or /custom"
EXHAUSTED_TEXT = "❌ No cards available. Choose another mode with /page, /all or /custom"


class SessionManager:
    """Keeps one study session and one progress store per user"""

    def __init__(
        self,
        settings: Settings,
        kv_store: KeyValueRepository,
        page_source: PageSource,
        safe_reply_callback,
        safe_edit_callback,
    ):
        self.settings = settings
        self.kv_store = kv_store
        self.page_source = page_source
        self._safe_reply = safe_reply_callback
        self._safe_edit = safe_edit_callback
        self.user_sessions: dict[int, StudySession] = {}
        self.user_progress: dict[int, ProgressStore] = {}

    def get_session(self, user_id: int) -> StudySession | None:
        """Get active session for user"""
        return self.user_sessions.get(user_id)

    def get_progress(self, user_id: int) -> ProgressStore:
        """Get (and cache) the progress store of a user"""
        progress = self.user_progress.get(user_id)
        if progress is None:
            progress = ProgressStore(self.kv_store, key=f"{PROGRESS_KEY}:{user_id}")
            self.user_progress[user_id] = progress
        return progress

    def create_session(self, user_id: int) -> StudySession:
        return StudySession(
            self.page_source,
            self.get_progress(user_id),
            total_pages=self.settings.total_pages,
            recent_capacity=self.settings.recent_capacity,
            recycle_low_water_mark=self.settings.recycle_low_water_mark,
            prefetch_threshold=self.settings.prefetch_threshold,
            prefetch_batch_size=self.settings.prefetch_batch_size,
            initial_pages=self.settings.initial_pages,
            on_card_changed=lambda card: logger.debug(
                f"User {user_id} card: {card.word if card else 'none left'}"
            ),
            on_stats_changed=lambda stats: logger.debug(
                f"User {user_id} progress: {stats.completion}% of {stats.total}"
            ),
        )

    async def start_study_session(
        self,
        update: Update,
        mode: StudyMode,
        params: dict | None = None,
    ):
        """Start a new study session in the given mode and show its first card"""
        user_id = update.effective_user.id
        await self.end_session(user_id)

        session = self.create_session(user_id)
        try:
            await session.select_mode(mode, params)
        except (CardsExhausted, ValueError) as e:
            await session.close()
            await self._safe_reply(update, f"❌ {e}")
            return

        self.user_sessions[user_id] = session
        logger.info(f"User {user_id} started {mode.value} session")
        await self._show_current_card(update, session)

    async def end_session(self, user_id: int):
        """Drop a user's session after its pending page loads finish"""
        session = self.user_sessions.pop(user_id, None)
        if session:
            await session.close()

    async def show_next(self, target, user_id: int, edit: bool = False):
        """Advance to the next card"""
        session = self.get_session(user_id)
        if not session:
            await self._deliver(target, NO_SESSION_TEXT, edit=edit)
            return

        try:
            card = await session.next()
        except CardsExhausted:
            await self._deliver(target, EXHAUSTED_TEXT, edit=edit)
            return

        if card is None:
            # Another selection is still running
            return

        await self._show_current_card(target, session, edit=edit)

    async def show_previous(self, target, user_id: int, edit: bool = False):
        """Go back to the previous card"""
        session = self.get_session(user_id)
        if not session:
            await self._deliver(target, NO_SESSION_TEXT, edit=edit)
            return

        if session.previous() is None:
            if not edit:
                await self._safe_reply(target, "⏮️ This is the first card")
            return

        await self._show_current_card(target, session, edit=edit)

    async def flip_card(self, target, user_id: int, edit: bool = False):
        """Show the other side of the current card"""
        session = self.get_session(user_id)
        if not session or session.current is None:
            await self._deliver(target, NO_SESSION_TEXT, edit=edit)
            return

        session.flip()
        await self._show_current_card(target, session, edit=edit)

    async def mark_card(self, target, user_id: int, status: CardStatus, edit: bool = False):
        """Record a status for the current card and move on"""
        session = self.get_session(user_id)
        if not session or session.current is None:
            await self._deliver(target, NO_SESSION_TEXT, edit=edit)
            return

        card = session.mark(status)
        logger.info(f"User {user_id} marked '{card.word}' as {status.value}")
        await self.show_next(target, user_id, edit=edit)

    def render_card(self, session: StudySession) -> tuple[str, InlineKeyboardMarkup]:
        """Text and keyboard for the current side of the current card"""
        card = session.current
        if session.is_flipped:
            status = session.progress.status_of(card.word)
            text = format_card_back(card, status.value if status else None)
        else:
            text = format_card_front(card, session.total_shown, session.total_cards)

        return text, self.build_card_keyboard(session)

    def build_card_keyboard(self, session: StudySession) -> InlineKeyboardMarkup:
        navigation = [
            InlineKeyboardButton("🔄 Flip", callback_data=create_inline_keyboard_data("flip")),
            InlineKeyboardButton("➡️", callback_data=create_inline_keyboard_data("next")),
        ]
        if session.can_go_back:
            navigation.insert(
                0, InlineKeyboardButton("⬅️", callback_data=create_inline_keyboard_data("prev"))
            )

        keyboard = [
            navigation,
            [
                InlineKeyboardButton(
                    "✅ Known",
                    callback_data=create_inline_keyboard_data("mark", status=CardStatus.KNOWN.value),
                ),
                InlineKeyboardButton(
                    "❓ Unknown",
                    callback_data=create_inline_keyboard_data("mark", status=CardStatus.UNKNOWN.value),
                ),
                InlineKeyboardButton(
                    "🔁 Review",
                    callback_data=create_inline_keyboard_data("mark", status=CardStatus.REVIEW.value),
                ),
            ],
        ]

        if session.is_flipped and session.current is not None:
            word = session.current.word
            card_index = session.pool.all_cards.index(session.current)
            keyboard.append(
                [InlineKeyboardButton(name, url=url) for name, url in quick_links(word).items()]
            )
            keyboard.append(
                [
                    InlineKeyboardButton(
                        "🌐 Translate",
                        callback_data=create_inline_keyboard_data("tr", card=card_index),
                    )
                ]
            )

        return InlineKeyboardMarkup(keyboard)

    async def handle_study_callback(self, query):
        """Handle study-related callback queries"""
        data = parse_inline_keyboard_data(query.data)
        action = data.get("action")
        user_id = query.from_user.id

        if action == "next":
            await self.show_next(query, user_id, edit=True)
        elif action == "prev":
            await self.show_previous(query, user_id, edit=True)
        elif action == "flip":
            await self.flip_card(query, user_id, edit=True)
        elif action == "mark":
            try:
                status = CardStatus(data.get("status"))
            except ValueError:
                logger.error(f"Invalid status in callback data: {data}")
                return
            await self.mark_card(query, user_id, status, edit=True)
        else:
            logger.warning(f"Unknown study callback action: {action}")

    async def _show_current_card(self, target, session: StudySession, edit: bool = False):
        text, reply_markup = self.render_card(session)
        await self._deliver(target, text, edit=edit, reply_markup=reply_markup, parse_mode="HTML")

    async def _deliver(self, target, text: str, edit: bool = False, **kwargs):
        if edit:
            return await self._safe_edit(target, text, **kwargs)
        return await self._safe_reply(target, text, **kwargs)

    async def close_all(self):
        """Finish every session, used on shutdown"""
        for user_id in list(self.user_sessions):
            await self.end_session(user_id)
