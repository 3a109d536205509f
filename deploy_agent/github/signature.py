"""HMAC-SHA256 verification for GitHub webhook deliveries.

GitHub signs each delivery with the webhook secret and sends the digest in the
``x-hub-signature-256`` header as ``sha256=<hex digest>``.

Usage
-----
>>> body = b'{"zen": "Keep it logically awesome."}'
>>> digest = compute_signature("s3cret", body)
>>> verify_signature("s3cret", body, digest)
True

"""

from __future__ import annotations

import hashlib
import hmac
import typing as typ

from deploy_agent.logging import get_logger, log_error
from deploy_agent.secret_store import WEBHOOK_SECRET_NAME

from .errors import SignatureDecodeError, SignatureMismatchError

if typ.TYPE_CHECKING:
    from deploy_agent.secret_store import SecretStore

SIGNATURE_HEADER = "x-hub-signature-256"
SIGNATURE_PREFIX = "sha256="

logger = get_logger(__name__)


def parse_signature_header(value: str | None) -> bytes:
    """Decode the digest carried by an ``x-hub-signature-256`` header.

    Parameters
    ----------
    value
        Raw header value, or ``None`` when the header was not sent.

    Returns
    -------
    bytes
        The decoded digest.

    Raises
    ------
    SignatureDecodeError
        If the header is missing, lacks the ``sha256=`` prefix, or the
        remainder is not hexadecimal.

    """
    if value is None or not value.strip():
        raise SignatureDecodeError.missing()
    if not value.startswith(SIGNATURE_PREFIX):
        raise SignatureDecodeError.bad_prefix(value)
    try:
        return bytes.fromhex(value[len(SIGNATURE_PREFIX) :])
    except ValueError as exc:
        raise SignatureDecodeError.not_hex(value) from exc


def compute_signature(secret: str, body: bytes) -> bytes:
    """Return the HMAC-SHA256 digest of ``body`` keyed with ``secret``."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()


def format_signature_header(secret: str, body: bytes) -> str:
    """Return the header value GitHub would send for ``body``."""
    return f"{SIGNATURE_PREFIX}{compute_signature(secret, body).hex()}"


def verify_signature(secret: str, body: bytes, digest: bytes) -> bool:
    """Return whether ``digest`` authenticates ``body`` (constant time)."""
    return hmac.compare_digest(compute_signature(secret, body), digest)


class SignatureVerifier:
    """Authenticate webhook bodies against the secret held in a secret store.

    The secret is fetched on every call so a rotated secret takes effect on
    the next delivery.
    """

    def __init__(
        self,
        secret_store: SecretStore,
        *,
        secret_name: str = WEBHOOK_SECRET_NAME,
    ) -> None:
        """Initialise the verifier with a secret store."""
        self._secret_store = secret_store
        self._secret_name = secret_name

    async def verify(self, body: bytes, header_value: str | None) -> None:
        """Verify ``body`` against the ``x-hub-signature-256`` header.

        The header is decoded before the secret is fetched, so a malformed
        header never reaches the secret store.

        Raises
        ------
        SignatureDecodeError
            If the header cannot be decoded.
        SignatureMismatchError
            If the digest does not match.
        SecretStoreError
            If the webhook secret cannot be read.

        """
        try:
            digest = parse_signature_header(header_value)
        except SignatureDecodeError:
            log_error(
                logger, "Rejected webhook with bad signature header %r", header_value
            )
            raise

        secret = await self._secret_store.get_secret(self._secret_name)
        if not verify_signature(secret, body, digest):
            log_error(
                logger, "Rejected webhook with mismatched digest %s", digest.hex()
            )
            raise SignatureMismatchError(digest)
