"""Error taxonomy for authentication attempts.

Provider reason codes arrive in whatever vocabulary the identity provider
uses ("auth/wrong-password", "unauthorized_credentials", ...). They are
normalised here and collapsed into a small, stable set of ErrorKind values
that the presentation layer can rely on.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """The reason the latest attempt failed."""

    NO_SUCH_ACCOUNT = "no_such_account"
    BAD_SECRET = "bad_secret"
    MALFORMED_IDENTIFIER = "malformed_identifier"
    RATE_LIMITED = "rate_limited"
    UNKNOWN_AUTH_FAILURE = "unknown_auth_failure"
    FEDERATED_FAILED = "federated_failed"
    ANONYMOUS_FAILED = "anonymous_failed"
    CODE_SEND_FAILED = "code_send_failed"
    INVALID_CODE = "invalid_code"
    NO_ACTIVE_CHALLENGE = "no_active_challenge"
    MISSING_CREDENTIALS = "missing_credentials"
    MISSING_PHONE_NUMBER = "missing_phone_number"
    MISSING_CODE = "missing_code"
    SIGN_OUT_FAILED = "sign_out_failed"


class ErrorCategory(StrEnum):
    """Coarse grouping of ErrorKind values for display and retry decisions."""

    INPUT_ERROR = "input_error"
    CREDENTIAL_ERROR = "credential_error"
    CHALLENGE_ERROR = "challenge_error"
    RATE_LIMITED = "rate_limited"
    UNKNOWN_AUTH_FAILURE = "unknown_auth_failure"


# Canonical provider reason codes (normalised form)
USER_NOT_FOUND = "user-not-found"
WRONG_PASSWORD = "wrong-password"  # nosec B105
INVALID_EMAIL = "invalid-email"
TOO_MANY_REQUESTS = "too-many-requests"
INVALID_PHONE_NUMBER = "invalid-phone-number"
INVALID_VERIFICATION_CODE = "invalid-verification-code"
OPERATION_NOT_ALLOWED = "operation-not-allowed"
FEDERATED_UNAVAILABLE = "federated-unavailable"
POPUP_CLOSED = "popup-closed-by-user"
NO_SESSION = "no-session"
INTERNAL_ERROR = "internal-error"

_PASSWORD_REASONS: dict[str, ErrorKind] = {
    USER_NOT_FOUND: ErrorKind.NO_SUCH_ACCOUNT,
    "account-not-found": ErrorKind.NO_SUCH_ACCOUNT,
    "email-not-found": ErrorKind.NO_SUCH_ACCOUNT,
    WRONG_PASSWORD: ErrorKind.BAD_SECRET,
    "bad-secret": ErrorKind.BAD_SECRET,
    "invalid-password": ErrorKind.BAD_SECRET,
    "unauthorized-credentials": ErrorKind.BAD_SECRET,
    INVALID_EMAIL: ErrorKind.MALFORMED_IDENTIFIER,
    "malformed-identifier": ErrorKind.MALFORMED_IDENTIFIER,
    TOO_MANY_REQUESTS: ErrorKind.RATE_LIMITED,
    "rate-limited": ErrorKind.RATE_LIMITED,
}

_CATEGORIES: dict[ErrorKind, ErrorCategory] = {
    ErrorKind.NO_SUCH_ACCOUNT: ErrorCategory.CREDENTIAL_ERROR,
    ErrorKind.BAD_SECRET: ErrorCategory.CREDENTIAL_ERROR,
    ErrorKind.MALFORMED_IDENTIFIER: ErrorCategory.INPUT_ERROR,
    ErrorKind.RATE_LIMITED: ErrorCategory.RATE_LIMITED,
    ErrorKind.UNKNOWN_AUTH_FAILURE: ErrorCategory.UNKNOWN_AUTH_FAILURE,
    ErrorKind.FEDERATED_FAILED: ErrorCategory.UNKNOWN_AUTH_FAILURE,
    ErrorKind.ANONYMOUS_FAILED: ErrorCategory.UNKNOWN_AUTH_FAILURE,
    ErrorKind.CODE_SEND_FAILED: ErrorCategory.CHALLENGE_ERROR,
    ErrorKind.INVALID_CODE: ErrorCategory.CHALLENGE_ERROR,
    ErrorKind.NO_ACTIVE_CHALLENGE: ErrorCategory.CHALLENGE_ERROR,
    ErrorKind.MISSING_CREDENTIALS: ErrorCategory.INPUT_ERROR,
    ErrorKind.MISSING_PHONE_NUMBER: ErrorCategory.INPUT_ERROR,
    ErrorKind.MISSING_CODE: ErrorCategory.INPUT_ERROR,
    ErrorKind.SIGN_OUT_FAILED: ErrorCategory.UNKNOWN_AUTH_FAILURE,
}

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NO_SUCH_ACCOUNT: "No account found with this email address.",
    ErrorKind.BAD_SECRET: "Incorrect password. Please try again.",
    ErrorKind.MALFORMED_IDENTIFIER: "Please enter a valid email address.",
    ErrorKind.RATE_LIMITED: "Too many failed attempts. Please try again later.",
    ErrorKind.UNKNOWN_AUTH_FAILURE: (
        "Login failed. Please check your credentials and try again."
    ),
    ErrorKind.FEDERATED_FAILED: "Google sign-in failed. Please try again.",
    ErrorKind.ANONYMOUS_FAILED: "Anonymous sign-in failed. Please try again.",
    ErrorKind.CODE_SEND_FAILED: (
        "Failed to send verification code. Please check your phone number."
    ),
    ErrorKind.INVALID_CODE: "Invalid verification code. Please try again.",
    ErrorKind.NO_ACTIVE_CHALLENGE: (
        "No verification code has been sent. Request a new code first."
    ),
    ErrorKind.MISSING_CREDENTIALS: "Please enter your email and password.",
    ErrorKind.MISSING_PHONE_NUMBER: (
        "Please enter a phone number, including the country code (e.g. +1)."
    ),
    ErrorKind.MISSING_CODE: "Please enter the verification code.",
    ErrorKind.SIGN_OUT_FAILED: "Sign out failed. Please try again.",
}


def normalise_reason(reason: str | None) -> str:
    """Bring a provider reason code into the canonical hyphenated form.

    Strips a namespace prefix ("auth/wrong-password" -> "wrong-password"),
    lower-cases, and folds spaces and underscores into hyphens so that
    "account not found" and "USER_NOT_FOUND" land in the same vocabulary.
    """
    if not reason:
        return ""
    code = reason.strip().lower().rsplit("/", 1)[-1]
    return "-".join(code.replace("_", " ").split())


def classify_password_failure(reason: str | None) -> ErrorKind:
    """Map a password sign-in rejection onto an ErrorKind.

    Pure function of the reason code; unknown codes become
    UNKNOWN_AUTH_FAILURE.
    """
    return _PASSWORD_REASONS.get(
        normalise_reason(reason), ErrorKind.UNKNOWN_AUTH_FAILURE
    )


def category_for(kind: ErrorKind) -> ErrorCategory:
    """Return the display category for an error kind."""
    return _CATEGORIES[kind]


def user_message(kind: ErrorKind) -> str:
    """Return the sentence shown to the user for an error kind."""
    return _MESSAGES[kind]
