"""Exception hierarchy for the food diary."""


class DiaryError(Exception):
    """Base class for errors the request boundary knows how to report."""


class InvalidGramsError(DiaryError, ValueError):
    """A gram value was not a finite number greater than zero."""


class InvalidDateTokenError(DiaryError, ValueError):
    """A date token could not be parsed into a calendar day."""


class UnknownNutrientError(DiaryError, ValueError):
    """A nutrient name is not one of the supported goal nutrients."""


class GoalOutOfRangeError(DiaryError, ValueError):
    """A goal value is outside the accepted range for its nutrient."""

    def __init__(self, nutrient: str, value: float, minimum: float, maximum: float):
        super().__init__(
            f"{nutrient} goal {value:g} is outside {minimum:g}..{maximum:g}"
        )
        self.nutrient = nutrient
        self.value = value
        self.minimum = minimum
        self.maximum = maximum


class NotFoundError(DiaryError, LookupError):
    """A referenced record does not exist."""


class ItemNotFoundError(NotFoundError):
    """A line item does not exist."""


class EntryNotFoundError(NotFoundError):
    """A food entry does not exist."""


class CoachRequestNotFoundError(NotFoundError):
    """A coach request does not exist."""


class ZeroBaselineError(DiaryError):
    """A stored item has zero grams, so it cannot be rescaled."""


class StorageError(DiaryError, RuntimeError):
    """The backing store rejected or did not confirm a write."""


class ExtractionError(DiaryError):
    """The extraction provider could not produce usable food items."""


class ExtractionTimeoutError(ExtractionError):
    """The extraction provider did not answer in time."""


class MalformedExtractionError(ExtractionError):
    """The extraction provider returned data outside the expected schema."""


class NothingRecognizedError(ExtractionError):
    """The extraction provider returned an empty item list."""


class ExtractionRateLimitedError(ExtractionError):
    """The extraction provider throttled the request."""


class ExtractionAuthError(ExtractionError):
    """The extraction provider rejected our credentials."""


class ExtractionServiceError(ExtractionError):
    """The extraction provider failed for another reason."""


class EmptyTranscriptError(ExtractionError):
    """Speech recognition returned no text."""


class VoiceTooLongError(DiaryError):
    """A voice note exceeds the accepted duration."""

    def __init__(self, duration_seconds: int, limit_seconds: int):
        super().__init__(f"voice note is {duration_seconds}s, limit {limit_seconds}s")
        self.duration_seconds = duration_seconds
        self.limit_seconds = limit_seconds


class InvalidGoalValueError(DiaryError, ValueError):
    """A goal value could not be read as a number."""
