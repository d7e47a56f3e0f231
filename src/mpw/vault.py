"""
Authenticated encryption of user chosen secrets.

Stored secrets are sealed with ChaCha20-Poly1305 under a storage key derived
from the master key and the site name. This is not part of the Master
Password algorithm.
"""

import binascii
import logging
import os
from base64 import urlsafe_b64decode, urlsafe_b64encode
from collections import namedtuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from mpw.crypto import LATEST, Purpose, derive_seed
from mpw.exceptions import AuthenticationFailed
from mpw.secret import SecretBuffer, to_bytes

logger = logging.getLogger(__name__)

NONCE_LENGTH = 12
TAG_LENGTH = 16
#: Secrets shorter than this are padded so that their length is hidden. This
#: is the length of the longest generated password and must be below 256.
PAD_LENGTH = 20


class Sealed(namedtuple('Sealed', 'ciphertext nonce')):
    """
    An encrypted secret and the nonce it was encrypted with.
    """

    __slots__ = ()

    def encode(self):
        """
        Encode as URL-safe base64 of the nonce followed by the ciphertext.

        Returns:
            str: the encoded bundle.
        """
        return urlsafe_b64encode(self.nonce + self.ciphertext).decode('ascii')

    @classmethod
    def decode(cls, s):
        """
        Decode a bundle created with `Sealed.encode()`.

        Args:
            s (str): the encoded bundle.

        Returns:
            Sealed: the decoded bundle.

        Raises:
            ValueError: if the bundle is not valid base64 or is too short.
        """
        try:
            raw = urlsafe_b64decode(s.encode('ascii'))
        except (binascii.Error, UnicodeEncodeError) as e:
            raise ValueError(f'invalid encrypted bundle: {e}')

        if len(raw) < NONCE_LENGTH + TAG_LENGTH:
            raise ValueError('invalid encrypted bundle: too short')

        return cls(ciphertext=raw[NONCE_LENGTH:], nonce=raw[:NONCE_LENGTH])


def pad(data):
    """
    Pad data to at least `PAD_LENGTH` bytes.

    Short data is followed by `n` bytes of value `n`. Data that is already at
    least `PAD_LENGTH` long is followed by a single zero byte.

    Args:
        data (bytes, bytearray, memoryview): the data to pad.

    Returns:
        SecretBuffer: the padded data.
    """
    n = max(PAD_LENGTH - len(data), 0)
    padded = SecretBuffer.zeros(len(data) + (n or 1))

    with padded.view() as view:
        view[: len(data)] = data
        view[len(data) :] = bytes([n]) * (n or 1)

    return padded


def unpad(padded):
    """
    Remove padding added by `pad()`.

    The result is a slice of the input, so a memoryview is not copied.

    Args:
        padded (bytes, bytearray, memoryview): the padded data.

    Returns:
        bytes, bytearray, memoryview: the original data.
    """
    n = padded[-1] or 1
    return padded[: len(padded) - n]


def storage_key(master_key, site_name, version=LATEST):
    """
    Derive the storage key for a site.

    Args:
        master_key (SecretBuffer): the master key.
        site_name (str): the name of the site.
        version (Version): the algorithm version.

    Returns:
        SecretBuffer: the 32 byte storage key.
    """
    return SecretBuffer(
        derive_seed(master_key, site_name, version=version, purpose=Purpose.STORAGE)
    )


def encrypt(master_key, site_name, secret, version=LATEST):
    """
    Encrypt a secret for a site.

    Args:
        master_key (SecretBuffer): the master key.
        site_name (str): the name of the site.
        secret (SecretBuffer, str, bytes): the secret to encrypt.
        version (Version): the algorithm version.

    Returns:
        Sealed: the ciphertext and a fresh random nonce.
    """
    if not len(secret):
        raise ValueError('cannot encrypt an empty secret')

    nonce = os.urandom(NONCE_LENGTH)

    if isinstance(secret, SecretBuffer):
        with secret.view() as view:
            padded = pad(view)
    else:
        padded = pad(to_bytes(secret))

    with storage_key(master_key, site_name, version) as key:
        with padded, padded.view() as data:
            cipher = ChaCha20Poly1305(bytes(key))
            ciphertext = cipher.encrypt(nonce, data, None)

    logger.debug('encrypted secret for %r', site_name)
    return Sealed(ciphertext=ciphertext, nonce=nonce)


def decrypt(master_key, site_name, sealed, version=LATEST):
    """
    Decrypt a secret for a site.

    Args:
        master_key (SecretBuffer): the master key.
        site_name (str): the name of the site.
        sealed (Sealed): the ciphertext and nonce.
        version (Version): the algorithm version.

    Returns:
        SecretBuffer: the decrypted secret.

    Raises:
        AuthenticationFailed: if the ciphertext does not authenticate.
    """
    with storage_key(master_key, site_name, version) as key:
        cipher = ChaCha20Poly1305(bytes(key))

        try:
            padded = cipher.decrypt(sealed.nonce, sealed.ciphertext, None)
        except (InvalidTag, ValueError):
            raise AuthenticationFailed(
                f'incorrect master password or corrupted entry for {site_name!r}'
            )

    with SecretBuffer(padded) as buffer, buffer.view() as view:
        return SecretBuffer(unpad(view))
