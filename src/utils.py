"""
Utility functions for the Vocabulary Flashcard Trainer
"""

import html
import inspect
import json
import logging
import time
from functools import wraps
from typing import Any

from .core.models import Card, ProgressStats, TranslationResult

logger = logging.getLogger(__name__)

STATUS_EMOJIS = {"known": "✅", "unknown": "❓", "review": "🔁"}


def format_card_front(card: Card, shown: int = 0, loaded: int = 0) -> str:
    """Front side of a card: the word without its article"""
    progress_info = f"Card {shown}" if shown else ""
    if progress_info and loaded:
        progress_info += f" · {loaded} loaded"

    result = f"🇩🇪 <b>{html.escape(card.display_word)}</b>"
    if progress_info:
        result = f"{progress_info}\n\n{result}"
    return result


def format_card_back(card: Card, status: str | None = None) -> str:
    """Back side of a card: full word, pronunciation, meanings and example"""
    def field(value: str) -> str:
        return html.escape(value) if value and value.strip() else "-"

    result = f"🔤 <b>{field(card.word)}</b>\n"
    result += f"🗣️ {field(card.pronunciation)}\n"
    result += f"🇧🇩 {field(card.translation_primary)}\n"
    result += f"🇬🇧 {field(card.translation_secondary)}\n"
    result += f"📝 <i>{field(card.example_sentence)}</i>"

    if status:
        result += f"\n\n{STATUS_EMOJIS.get(status, '')} {status}"

    return result


def format_progress_stats(stats: ProgressStats, duration: float | None = None) -> str:
    """Format session progress statistics"""
    result = "📊 Statistics:\n\n"
    result += f"📚 Total: {stats.total}\n"
    result += f"✅ Known: {stats.known}\n"
    result += f"❓ Unknown: {stats.unknown}\n"
    result += f"🔁 Review: {stats.review}\n"
    result += f"🎯 Progress: {stats.completion}%\n"

    if duration is not None:
        minutes, seconds = divmod(int(duration), 60)
        result += f"⏱️ Session time: {minutes}m {seconds:02d}s\n"

    return result


def format_translation(result: TranslationResult, source_name: str = "German", target_name: str = "Bengali") -> str:
    """Format a translation lookup for display"""
    word = html.escape(result.word)
    if not result.ok:
        return (
            f"Unable to fetch translation for <b>{word}</b>.\n"
            f'<a href="{html.escape(result.fallback_url)}">Open Google Translate</a>'
        )

    text = f"{source_name}: <b>{word}</b>\n"
    text += f"{target_name}: <b>{html.escape(result.translation)}</b>\n"
    text += f'<a href="{html.escape(result.fallback_url)}">Open in Google Translate</a>'
    if result.source:
        text += f"\n<i>Translation provided by {html.escape(result.source)}</i>"
    return text


def extract_json_safely(json_str: str) -> dict[str, Any]:
    """Safely extract JSON from string"""
    if not json_str:
        return {}

    try:
        return json.loads(json_str)
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"Failed to parse JSON: {json_str}")
        return {}


def format_json_safely(data: Any) -> str:
    """Safely format data as JSON string"""
    try:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        logger.warning(f"Failed to serialize to JSON: {data}")
        return "{}"


def create_inline_keyboard_data(action: str, **kwargs) -> str:
    """Create callback data for inline keyboard with compact format"""
    # Telegram limits callback data to 64 bytes
    compact_data = {"a": action}

    key_mappings = {
        "status": "s",
        "confirm": "c",
        "page": "p",
        "index": "i",
        "card": "k",
    }

    for key, value in kwargs.items():
        compact_data[key_mappings.get(key, key)] = value

    result = format_json_safely(compact_data)
    if len(result.encode("utf-8")) > 64:
        raise ValueError(f"Callback data too long: {result}")

    return result


def parse_inline_keyboard_data(callback_data: str) -> dict[str, Any]:
    """Parse callback data from inline keyboard with compact format support"""
    raw_data = extract_json_safely(callback_data)

    if "action" in raw_data:
        return raw_data

    key_mappings = {
        "a": "action",
        "s": "status",
        "c": "confirm",
        "p": "page",
        "i": "index",
        "k": "card",
    }

    return {key_mappings.get(key, key): value for key, value in raw_data.items()}


def parse_word_list(text: str) -> list[str]:
    """Split user input on new lines and commas"""
    if not text:
        return []
    parts = text.replace(",", "\n").split("\n")
    return [part.strip() for part in parts if part.strip()]


def safe_int(value: Any, default: int = 0) -> int:
    """Safely convert value to integer"""
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


class Timer:
    """Simple timer for measuring duration"""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start the timer"""
        self.start_time = time.time()
        self.end_time = None

    def stop(self):
        """Stop the timer"""
        if self.start_time is not None:
            self.end_time = time.time()

    def elapsed(self) -> float | None:
        """Get elapsed time in seconds"""
        if self.start_time is None:
            return None

        end = self.end_time or time.time()
        return end - self.start_time


def log_execution_time(func):
    """Decorator to log function execution time"""

    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = await func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.error(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.error(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    else:
        return sync_wrapper
