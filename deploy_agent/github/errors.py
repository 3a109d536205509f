"""GitHub webhook and artifact errors."""

from __future__ import annotations

_BODY_PREVIEW_LIMIT = 2048


class SignatureError(Exception):
    """Base class for webhook authentication failures."""


class SignatureDecodeError(SignatureError):
    """Raised when the ``x-hub-signature-256`` header cannot be decoded."""

    def __init__(self, message: str, *, header_value: str | None = None) -> None:
        """Initialise with a message and the offending header value."""
        self.header_value = header_value
        super().__init__(message)

    @classmethod
    def missing(cls) -> SignatureDecodeError:
        """Return an error for a request without a signature header."""
        return cls("x-hub-signature-256 header is missing")

    @classmethod
    def bad_prefix(cls, header_value: str) -> SignatureDecodeError:
        """Return an error for a header without the ``sha256=`` prefix."""
        return cls(
            "x-hub-signature-256 header must start with 'sha256='",
            header_value=header_value,
        )

    @classmethod
    def not_hex(cls, header_value: str) -> SignatureDecodeError:
        """Return an error for a digest that is not valid hexadecimal."""
        return cls(
            "x-hub-signature-256 digest is not valid hexadecimal",
            header_value=header_value,
        )


class SignatureMismatchError(SignatureError):
    """Raised when the supplied digest does not match the request body."""

    def __init__(self, digest: bytes) -> None:
        """Initialise with the digest supplied by the caller."""
        self.digest = digest
        super().__init__("x-hub-signature-256 does not match the request body")


class MissingEventHeaderError(Exception):
    """Raised when the ``x-github-event`` header is absent or empty."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("x-github-event header is missing")


class MalformedPayloadError(Exception):
    """Raised when a handled event's body cannot be decoded.

    Attributes
    ----------
    event_kind
        Value of the ``x-github-event`` header.
    raw_body
        Request body as received, kept for operator diagnosis.
    reason
        Decoder error message.

    """

    def __init__(self, event_kind: str, raw_body: bytes, reason: str) -> None:
        """Initialise with the event kind, raw body, and decoder message."""
        self.event_kind = event_kind
        self.raw_body = raw_body
        self.reason = reason
        super().__init__(f"failed to decode {event_kind} payload: {reason}")

    def body_preview(self) -> str:
        """Return the raw body as text, truncated for logging."""
        text = self.raw_body.decode("utf-8", errors="replace")
        if len(text) <= _BODY_PREVIEW_LIMIT:
            return text
        return f"{text[:_BODY_PREVIEW_LIMIT]}..."


class ArtifactFetchError(RuntimeError):
    """Raised when a workflow run's artifact cannot be downloaded."""

    def __init__(
        self, message: str, *, url: str, status_code: int | None = None
    ) -> None:
        """Initialise with a message, the URL involved and any HTTP status."""
        self.url = url
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, url: str, status_code: int) -> ArtifactFetchError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"GitHub returned HTTP {status_code} for {url}",
            url=url,
            status_code=status_code,
        )

    @classmethod
    def transport(cls, url: str, exc: Exception) -> ArtifactFetchError:
        """Return an error for connection or timeout failures."""
        return cls(f"request to {url} failed: {type(exc).__name__}", url=url)

    @classmethod
    def invalid_json(cls, url: str, reason: str) -> ArtifactFetchError:
        """Return an error for an artifact list that cannot be decoded."""
        return cls(f"artifact list from {url} is malformed: {reason}", url=url)

    @classmethod
    def no_artifacts(cls, url: str) -> ArtifactFetchError:
        """Return an error for a workflow run without artifacts."""
        return cls(f"workflow run has no artifacts at {url}", url=url)
