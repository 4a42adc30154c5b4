"""Error taxonomy for the CareerPath engine."""


class CareerPathError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(CareerPathError, ValueError):
    """Malformed arguments (negative limit, missing profile, empty message, ...)."""


class UpstreamUnavailableError(CareerPathError):
    """The document store or the text-completion service failed or timed out.

    Scoring and aggregation never raise this; only calls that cross an
    external boundary do.  The original exception is kept as ``__cause__``.
    """


class SessionConflictError(CareerPathError):
    """A chat turn is already in flight for this session key.

    Not a hard failure: the caller should retry once the other turn finishes.
    """

    def __init__(self, session_key: str) -> None:
        super().__init__(f"A turn is already in progress for session '{session_key}'")
        self.session_key = session_key
