from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from botocore.signers import CloudFrontSigner
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa


def _cloudfront_b64(data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return encoded.replace("+", "-").replace("=", "_").replace("/", "~")


class CloudFrontUrlSigner:
    """Sign delivery URLs (or issue signed cookies) for a CloudFront distribution."""

    def __init__(
        self,
        base_url: str,
        key_id: str,
        private_key_pem: bytes,
        *,
        expiration: timedelta = timedelta(hours=1),
    ):
        key = serialization.load_pem_private_key(private_key_pem, password=None)
        if not isinstance(key, rsa.RSAPrivateKey):
            raise ValueError("CloudFront signing requires an RSA private key")
        self.base_url = base_url.rstrip("/")
        self.key_id = key_id
        self.expiration = expiration
        self._key = key
        self._signer = CloudFrontSigner(key_id, self._rsa_sign)

    @classmethod
    def from_key_file(
        cls, base_url: str, key_id: str, key_file: str | Path, *, expiration_hours: int = 1
    ) -> "CloudFrontUrlSigner":
        return cls(
            base_url,
            key_id,
            Path(key_file).read_bytes(),
            expiration=timedelta(hours=expiration_hours),
        )

    def _rsa_sign(self, message: bytes) -> bytes:
        return self._key.sign(message, padding.PKCS1v15(), hashes.SHA1())

    def _expires_at(self, now: Optional[datetime] = None) -> datetime:
        return (now or datetime.now(timezone.utc)) + self.expiration

    def sign_url(self, url: str, now: Optional[datetime] = None) -> str:
        """Return url with a canned-policy signature appended."""
        return self._signer.generate_presigned_url(url, date_less_than=self._expires_at(now))

    def signed_cookies(
        self, resource: Optional[str] = None, now: Optional[datetime] = None
    ) -> dict[str, str]:
        """Cookie values granting access to resource (default: the whole distribution)."""
        resource = resource or f"{self.base_url}/*"
        policy = self._signer.build_policy(resource, self._expires_at(now)).encode("utf-8")
        return {
            "CloudFront-Policy": _cloudfront_b64(policy),
            "CloudFront-Signature": _cloudfront_b64(self._rsa_sign(policy)),
            "CloudFront-Key-Pair-Id": self.key_id,
        }
