"""Activation error taxonomy and classifier.

Every failure raised while checking or advancing an identity's activation
stage is converted into an ActivationError with a kind from a closed set.
The kind decides the end-user presentation and whether a retry makes sense.

Classification prefers typed signals (exception types, SQLSTATE codes) and
only falls back to message substrings for stores that do not expose them.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import DBAPIError, InterfaceError


class ActivationErrorKind(str, Enum):
    """Closed set of activation failure kinds."""

    # Profile
    PROFILE_CREATION_FAILED = "PROFILE_CREATION_FAILED"
    PROFILE_ALREADY_EXISTS = "PROFILE_ALREADY_EXISTS"

    # Owner setup
    OWNER_SETUP_FAILED = "OWNER_SETUP_FAILED"
    OWNER_SETUP_ALREADY_COMPLETED = "OWNER_SETUP_ALREADY_COMPLETED"

    # Invitation
    INVITE_INVALID = "INVITE_INVALID"
    INVITE_EXPIRED = "INVITE_EXPIRED"
    INVITE_ALREADY_ACCEPTED = "INVITE_ALREADY_ACCEPTED"
    INVITE_ACCEPT_FAILED = "INVITE_ACCEPT_FAILED"

    # Stage check
    AUTH_STAGE_CHECK_FAILED = "AUTH_STAGE_CHECK_FAILED"
    UNEXPECTED_AUTH_STAGE = "UNEXPECTED_AUTH_STAGE"

    # Cross-cutting
    UNAUTHENTICATED = "UNAUTHENTICATED"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ErrorContext(str, Enum):
    """Which operation produced the raw failure."""

    PROFILE = "profile"
    OWNER_SETUP = "owner_setup"
    INVITE = "invite"
    STAGE_CHECK = "stage_check"


@dataclass(frozen=True)
class ErrorPresentation:
    """End-user rendering of an error kind. can_retry is advisory only."""

    title: str
    description: str
    can_retry: bool


Kind = ActivationErrorKind

ERROR_PRESENTATIONS: dict[ActivationErrorKind, ErrorPresentation] = {
    Kind.PROFILE_CREATION_FAILED: ErrorPresentation(
        "Profile creation failed",
        "Something went wrong while creating your profile. Please try again.",
        True,
    ),
    Kind.PROFILE_ALREADY_EXISTS: ErrorPresentation(
        "Profile already exists",
        "Your profile has already been created. Continuing to the next step.",
        False,
    ),
    Kind.OWNER_SETUP_FAILED: ErrorPresentation(
        "Academy setup failed",
        "We could not save your academy details. Check your input and try again.",
        True,
    ),
    Kind.OWNER_SETUP_ALREADY_COMPLETED: ErrorPresentation(
        "Setup already completed",
        "Your academy is already set up. Taking you to the dashboard.",
        False,
    ),
    Kind.INVITE_INVALID: ErrorPresentation(
        "Invalid invitation",
        "Check the invitation link or ask your academy administrator for help.",
        False,
    ),
    Kind.INVITE_EXPIRED: ErrorPresentation(
        "Invitation expired",
        "This invitation has expired. Ask your academy administrator for a new one.",
        False,
    ),
    Kind.INVITE_ALREADY_ACCEPTED: ErrorPresentation(
        "Invitation already accepted",
        "This invitation has already been accepted. Please sign in to continue.",
        False,
    ),
    Kind.INVITE_ACCEPT_FAILED: ErrorPresentation(
        "Could not accept invitation",
        "Something went wrong while accepting the invitation. Please try again.",
        True,
    ),
    Kind.AUTH_STAGE_CHECK_FAILED: ErrorPresentation(
        "Could not check account status",
        "We could not determine your account status. Please try again shortly.",
        True,
    ),
    Kind.UNEXPECTED_AUTH_STAGE: ErrorPresentation(
        "Unexpected account state",
        "Your account is in a state we did not expect. Please contact support.",
        True,
    ),
    Kind.UNAUTHENTICATED: ErrorPresentation(
        "Sign-in required",
        "Please sign in again.",
        False,
    ),
    Kind.NETWORK_ERROR: ErrorPresentation(
        "Network error",
        "Check your connection and try again.",
        True,
    ),
    Kind.UNKNOWN_ERROR: ErrorPresentation(
        "Something went wrong",
        "A temporary error occurred. Please try again shortly.",
        True,
    ),
}

# Goal state already reached by another path (e.g. a duplicate tab).
BENIGN_KINDS = frozenset(
    {
        Kind.PROFILE_ALREADY_EXISTS,
        Kind.OWNER_SETUP_ALREADY_COMPLETED,
        Kind.INVITE_ALREADY_ACCEPTED,
    }
)

CONTEXT_DEFAULTS: dict[ErrorContext, ActivationErrorKind] = {
    ErrorContext.PROFILE: Kind.PROFILE_CREATION_FAILED,
    ErrorContext.OWNER_SETUP: Kind.OWNER_SETUP_FAILED,
    ErrorContext.INVITE: Kind.INVITE_ACCEPT_FAILED,
    ErrorContext.STAGE_CHECK: Kind.AUTH_STAGE_CHECK_FAILED,
}


class ActivationError(Exception):
    """A classified activation failure."""

    def __init__(
        self,
        kind: ActivationErrorKind,
        message: str | None = None,
        cause: BaseException | None = None,
        retryable: bool | None = None,
        benign: bool | None = None,
    ):
        self.kind = kind
        self.message = message or ERROR_PRESENTATIONS[kind].description
        self.cause = cause
        self._retryable = retryable
        self._benign = benign
        super().__init__(self.message)

    @property
    def presentation(self) -> ErrorPresentation:
        return ERROR_PRESENTATIONS[self.kind]

    @property
    def retryable(self) -> bool:
        """Kind's advisory flag unless overridden (e.g. attempts exhausted)."""
        if self._retryable is not None:
            return self._retryable
        return self.presentation.can_retry

    @property
    def benign(self) -> bool:
        """True when the caller's goal state has already been reached.

        Defaults by kind; overridden when the kind alone cannot tell, e.g. an
        invitation consumed by someone else.
        """
        if self._benign is not None:
            return self._benign
        return self.kind in BENIGN_KINDS

    def __repr__(self) -> str:
        return f"ActivationError(kind={self.kind.value!r}, message={self.message!r})"


class UnauthenticatedError(Exception):
    """No valid credential is attached to the request."""


class UnexpectedStageError(Exception):
    """Identity attributes match none of the defined activation stages."""

    def __init__(self, message: str, **snapshot: object):
        super().__init__(message)
        self.snapshot = snapshot


# SQLSTATE classes / codes that mean "the store was unreachable or timed out"
_CONNECTION_SQLSTATE_CLASS = "08"
_QUERY_CANCELED = "57014"
_UNIQUE_VIOLATION = "23505"


def _sqlstate(error: DBAPIError) -> str | None:
    """Extract the SQLSTATE from a wrapped driver error, if any."""
    for candidate in (error.orig, getattr(error.orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if isinstance(code, str):
            return code
    return None


def match_message(
    message: str, code: str, context: ErrorContext | None
) -> ActivationErrorKind | None:
    """Fallback adapter: classify by lowercase substrings of message/code."""
    if "network" in message or "fetch" in message or "connection refused" in message:
        return Kind.NETWORK_ERROR
    if "unauthenticated" in message or "not authenticated" in message or "401" in code:
        return Kind.UNAUTHENTICATED

    if context == ErrorContext.PROFILE:
        if "already exists" in message or "duplicate" in message:
            return Kind.PROFILE_ALREADY_EXISTS
    elif context == ErrorContext.OWNER_SETUP:
        if "already completed" in message:
            return Kind.OWNER_SETUP_ALREADY_COMPLETED
    elif context == ErrorContext.INVITE:
        if "invalid" in message or "invalid" in code or "not found" in message:
            return Kind.INVITE_INVALID
        if "expired" in message or "expired" in code:
            return Kind.INVITE_EXPIRED
        if "already" in message or "used" in message:
            return Kind.INVITE_ALREADY_ACCEPTED
    elif context == ErrorContext.STAGE_CHECK:
        if "unexpected" in message:
            return Kind.UNEXPECTED_AUTH_STAGE
    return None


MessageMatcher = Callable[[str, str, ErrorContext | None], ActivationErrorKind | None]


class ErrorClassifier:
    """Maps raw failures onto ActivationErrorKind.

    Typed signals win; the message matcher is consulted only when nothing
    typed applies, and the context default is used when both are silent.
    """

    def __init__(self, message_matcher: MessageMatcher | None = match_message):
        self.message_matcher = message_matcher

    def classify(
        self, raw: BaseException, context: ErrorContext | None = None
    ) -> ActivationError:
        if isinstance(raw, ActivationError):
            return raw

        kind = self._typed_kind(raw, context)
        if kind is None and self.message_matcher is not None:
            message = str(raw).lower()
            code = str(getattr(raw, "code", "") or "").lower()
            kind = self.message_matcher(message, code, context)
        if kind is None:
            kind = CONTEXT_DEFAULTS.get(context, Kind.UNKNOWN_ERROR)  # type: ignore[arg-type]

        return ActivationError(kind, cause=raw)

    @staticmethod
    def _typed_kind(
        raw: BaseException, context: ErrorContext | None
    ) -> ActivationErrorKind | None:
        if isinstance(raw, UnexpectedStageError):
            return Kind.UNEXPECTED_AUTH_STAGE
        if isinstance(raw, UnauthenticatedError):
            return Kind.UNAUTHENTICATED
        if isinstance(raw, (TimeoutError, ConnectionError)):
            return Kind.NETWORK_ERROR
        if isinstance(raw, DBAPIError):
            if raw.connection_invalidated or isinstance(raw, InterfaceError):
                return Kind.NETWORK_ERROR
            sqlstate = _sqlstate(raw)
            if sqlstate is None:
                return None
            if sqlstate.startswith(_CONNECTION_SQLSTATE_CLASS) or sqlstate == _QUERY_CANCELED:
                return Kind.NETWORK_ERROR
            if sqlstate == _UNIQUE_VIOLATION and context == ErrorContext.PROFILE:
                return Kind.PROFILE_ALREADY_EXISTS
        return None


default_classifier = ErrorClassifier()


def classify_error(raw: BaseException, context: ErrorContext | None = None) -> ActivationError:
    """Classify with the default classifier."""
    return default_classifier.classify(raw, context)
