"""
Exception hierarchy for the Vocabulary Flashcard Trainer
"""


class FlashcardError(Exception):
    """Base class for all trainer errors"""


class FetchFailure(FlashcardError):
    """A page could not be retrieved from its source"""

    def __init__(self, location: str, reason: str = ""):
        self.location = location
        self.reason = reason
        message = f"Failed to fetch {location}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class PoolEmpty(FlashcardError):
    """No card is currently available for drawing"""


class CardsExhausted(FlashcardError):
    """No card can be produced by prefetching or recycling"""


class NoHistory(FlashcardError):
    """There is no earlier card to go back to"""


class ProgressImportError(FlashcardError):
    """An imported progress document is invalid"""
