"""IssuerKeyring — Ed25519 public keys of trusted credential issuers."""
from __future__ import annotations

import logging
import threading

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from agent_reputation.collectors.records import CredentialRecord, credential_signing_payload

logger = logging.getLogger(__name__)


class IssuerKeyring:
    """Maps issuer ids to raw 32-byte Ed25519 public keys.

    A credential counts only if it carries a signature that verifies
    against its issuer's key. Credentials from unknown issuers, or with a
    missing or bad signature, are rejected.

    Parameters
    ----------
    keys:
        Optional initial ``{issuer_id: public_key_bytes}`` mapping.
    """

    def __init__(self, keys: dict[str, bytes] | None = None) -> None:
        self._keys: dict[str, Ed25519PublicKey] = {}
        self._lock = threading.Lock()
        for issuer, public_key in (keys or {}).items():
            self.trust(issuer, public_key)

    def trust(self, issuer: str, public_key: bytes) -> None:
        """Register *issuer* with its raw Ed25519 public key.

        Raises
        ------
        ValueError
            If *public_key* is not a valid 32-byte Ed25519 key.
        """
        key = Ed25519PublicKey.from_public_bytes(public_key)
        with self._lock:
            self._keys[issuer] = key

    def revoke(self, issuer: str) -> None:
        """Stop trusting *issuer*. Unknown issuers are ignored."""
        with self._lock:
            self._keys.pop(issuer, None)

    def is_trusted(self, issuer: str) -> bool:
        with self._lock:
            return issuer in self._keys

    def verify(self, subject_id: str, credential: CredentialRecord) -> bool:
        """Return True if *credential* is validly signed by a trusted issuer."""
        with self._lock:
            key = self._keys.get(credential.issuer)
        if key is None or credential.signature is None:
            return False
        payload = credential_signing_payload(
            subject_id,
            credential.credential_type,
            credential.issuer,
            credential.issued_at_ms,
        )
        try:
            key.verify(credential.signature, payload)
        except InvalidSignature:
            logger.warning(
                "Invalid %s credential signature from issuer %s for subject %s",
                credential.credential_type,
                credential.issuer,
                subject_id,
            )
            return False
        return True
