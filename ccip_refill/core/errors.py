USER_CANCELED_MESSAGE = "Transaction was canceled by user."
DEFAULT_SUBMISSION_MESSAGE = "Failed to initiate refill process"

# Substrings wallets and signers use when the user refuses to sign
_DECLINE_MARKERS = ("user rejected", "user denied", "rejected the request")


class RefillError(Exception):
    """Base for refill failures surfaced to the caller."""


class UserDeclined(RefillError):
    pass


class SubmissionError(RefillError):
    pass


class RefillUnavailable(RefillError):
    """Initiation is not configured (no signer or faucet address)."""


def classify_submission_error(exc: BaseException) -> RefillError:
    """Map a simulate/write failure to the user-visible error kind and message."""
    if isinstance(exc, RefillError) and not isinstance(exc, RefillUnavailable):
        return exc
    text = str(exc or "").strip()
    if any(m in text.lower() for m in _DECLINE_MARKERS):
        return UserDeclined(USER_CANCELED_MESSAGE)
    return SubmissionError(text or DEFAULT_SUBMISSION_MESSAGE)
