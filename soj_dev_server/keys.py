"""
RSA key that signs dev server access tokens. Generated on first use; persisted as PEM when
SOJ_DEV_SIGNING_KEY_PATH is set, otherwise kept in memory for the life of the process.
"""
import logging
from functools import lru_cache
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from soj_dev_server.config import SIGNING_KEY_PATH

logger = logging.getLogger(__name__)

KID = "soj-dev-key"


def load_or_create_signing_key(path: str | None) -> rsa.RSAPrivateKey:
    if path:
        pem_file = Path(path)
        if pem_file.exists():
            try:
                key = serialization.load_pem_private_key(pem_file.read_bytes(), password=None)
            except ValueError as e:
                logger.warning("Signing key at %s unreadable (%s); replacing it", path, e)
            else:
                if isinstance(key, rsa.RSAPrivateKey):
                    return key
                logger.warning("Signing key at %s is not RSA; replacing it", path)

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    if path:
        pem = key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        try:
            Path(path).write_bytes(pem)
            logger.info("New signing key written to %s", path)
        except OSError as e:
            logger.warning("Signing key not persisted to %s: %s", path, e)
    return key


@lru_cache(maxsize=1)
def get_signing_key() -> rsa.RSAPrivateKey:
    return load_or_create_signing_key(SIGNING_KEY_PATH)


def get_public_key() -> rsa.RSAPublicKey:
    return get_signing_key().public_key()
