"""
Key stretching and keyed hashing for the Master Password algorithm.

See https://masterpassword.app/masterpassword-algorithm.pdf for the published
algorithm that this module reproduces.
"""

import enum
import logging
import struct
import time
from collections import namedtuple
from types import MappingProxyType

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from mpw.exceptions import CounterError, UnsupportedVersion
from mpw.secret import SecretBuffer, to_bytes

logger = logging.getLogger(__name__)

MASTER_KEY_LENGTH = 64
SEED_LENGTH = 32
MAX_U32 = 0xFFFFFFFF


class Version(enum.IntEnum):
    """
    A version of the Master Password algorithm.
    """

    V0 = 0
    V1 = 1
    V2 = 2
    V3 = 3


LATEST = Version.V3


class Purpose(enum.Enum):
    """
    What a site seed is used for.

    Each purpose has its own scope so that derivations for different purposes
    are independent even when every other input is the same.
    """

    AUTHENTICATION = 'authentication'
    IDENTIFICATION = 'identification'
    RECOVERY = 'recovery'
    STORAGE = 'storage'


class Unit(enum.Enum):
    """
    How the length of a name is counted in a salt.
    """

    BYTES = 'bytes'
    CHARACTERS = 'characters'


ScryptParameters = namedtuple('ScryptParameters', 'n r p')

Parameters = namedtuple(
    'Parameters', 'scrypt scopes full_name_unit site_name_unit legacy_seed'
)

SCOPES = MappingProxyType(
    {
        Purpose.AUTHENTICATION: b'com.lyndir.masterpassword',
        Purpose.IDENTIFICATION: b'com.lyndir.masterpassword.login',
        Purpose.RECOVERY: b'com.lyndir.masterpassword.answer',
        # Not part of the published algorithm.
        Purpose.STORAGE: b'com.lyndir.masterpassword.storage',
    }
)

SCRYPT_PARAMETERS = ScryptParameters(n=32768, r=8, p=2)

VERSIONS = MappingProxyType(
    {
        Version.V0: Parameters(
            scrypt=SCRYPT_PARAMETERS,
            scopes=SCOPES,
            full_name_unit=Unit.CHARACTERS,
            site_name_unit=Unit.CHARACTERS,
            legacy_seed=True,
        ),
        Version.V1: Parameters(
            scrypt=SCRYPT_PARAMETERS,
            scopes=SCOPES,
            full_name_unit=Unit.CHARACTERS,
            site_name_unit=Unit.CHARACTERS,
            legacy_seed=False,
        ),
        Version.V2: Parameters(
            scrypt=SCRYPT_PARAMETERS,
            scopes=SCOPES,
            full_name_unit=Unit.CHARACTERS,
            site_name_unit=Unit.BYTES,
            legacy_seed=False,
        ),
        Version.V3: Parameters(
            scrypt=SCRYPT_PARAMETERS,
            scopes=SCOPES,
            full_name_unit=Unit.BYTES,
            site_name_unit=Unit.BYTES,
            legacy_seed=False,
        ),
    }
)


def get_version(version):
    """
    Resolve the given value to a supported algorithm Version.

    Args:
        version (Version, int, str): the version, for example `3`, `'3'` or
            `'v3'`.

    Returns:
        Version: the algorithm version.

    Raises:
        UnsupportedVersion: if there are no parameters for the version.
    """
    if isinstance(version, Version):
        return version

    try:
        if isinstance(version, str):
            version = int(version.lower().lstrip('v'))
        return Version(version)
    except (TypeError, ValueError):
        raise UnsupportedVersion(
            f'unsupported algorithm version {version!r}', version=version
        )


def parameters(version):
    """
    Return the algorithm Parameters for the given version.

    Args:
        version (Version, int, str): the algorithm version.

    Returns:
        Parameters: the version's parameters.
    """
    return VERSIONS[get_version(version)]


def scope(version, purpose):
    """
    Return the scope constant for a purpose.

    Args:
        version (Version, int, str): the algorithm version.
        purpose (Purpose): the purpose of the derivation.

    Returns:
        bytes: the scope.
    """
    return parameters(version).scopes[purpose]


def u32(n):
    """
    Encode an integer as a big endian unsigned 32 bit integer.

    Args:
        n (int): the integer.

    Returns:
        bytes: the 4 encoded bytes.
    """
    if not 0 <= n <= MAX_U32:
        raise CounterError(f'{n!r} does not fit in an unsigned 32 bit integer')

    return struct.pack('>I', n)


def length(data, unit):
    """
    Return the length of UTF-8 data in the given unit.

    Args:
        data (bytes): UTF-8 encoded text.
        unit (Unit): count bytes or characters.

    Returns:
        int: the length.
    """
    if unit is Unit.CHARACTERS:
        return len(data.decode('utf-8'))

    return len(data)


def _hmac_sha256(key, message):
    h = hmac.HMAC(key, hashes.SHA256(), backend=default_backend())
    h.update(message)
    return h.finalize()


def keyed_digest(key, message):
    """
    HMAC-SHA-256 a message.

    A `SecretBuffer` key is read through a view so that no immutable copy of
    it is made.

    Args:
        key (SecretBuffer, str, bytes): the key.
        message (bytes): the message to authenticate.

    Returns:
        bytes: the 32 byte digest.
    """
    if isinstance(key, SecretBuffer):
        with key.view() as view:
            return _hmac_sha256(view, message)

    return _hmac_sha256(to_bytes(key), message)


def stretch(full_name, master_password, version=LATEST):
    """
    Derive the master key for a user.

    This runs scrypt and is deliberately slow. When `master_password` is a
    `SecretBuffer` it is wiped once the key has been derived.

    Args:
        full_name (str): the user's full name.
        master_password (SecretBuffer, str, bytes): the master password.
        version (Version): the algorithm version.

    Returns:
        SecretBuffer: the 64 byte master key.

    Raises:
        UnsupportedVersion: if the version is not supported.
    """
    params = parameters(version)
    name = to_bytes(full_name)
    salt = (
        params.scopes[Purpose.AUTHENTICATION]
        + u32(length(name, params.full_name_unit))
        + name
    )
    kdf = Scrypt(
        salt=salt,
        length=MASTER_KEY_LENGTH,
        n=params.scrypt.n,
        r=params.scrypt.r,
        p=params.scrypt.p,
        backend=default_backend(),
    )

    start = time.perf_counter()
    try:
        if isinstance(master_password, SecretBuffer):
            with master_password.view() as view:
                key = kdf.derive(view)
        else:
            key = kdf.derive(to_bytes(master_password))
    finally:
        if isinstance(master_password, SecretBuffer):
            master_password.wipe()

    logger.debug(
        'stretched master key for version %d in %.3fs',
        get_version(version),
        time.perf_counter() - start,
    )
    return SecretBuffer(key)


def derive_seed(
    master_key,
    site_name,
    counter=1,
    version=LATEST,
    purpose=Purpose.AUTHENTICATION,
    context=None,
):
    """
    Derive the seed for a site.

    Args:
        master_key (SecretBuffer, bytes): the master key.
        site_name (str): the name of the site.
        counter (int): the site counter, between 0 and 2**32 - 1.
        version (Version): the algorithm version.
        purpose (Purpose): what the seed will be used for.
        context (str): optional extra context, for example a security
            question keyword.

    Returns:
        bytes: the 32 byte seed.

    Raises:
        CounterError: if the counter does not fit in an unsigned 32 bit
            integer.
    """
    params = parameters(version)
    name = to_bytes(site_name)
    message = (
        params.scopes[purpose]
        + u32(length(name, params.site_name_unit))
        + name
        + u32(counter)
    )

    if context:
        context = to_bytes(context)
        message += u32(length(context, params.site_name_unit)) + context

    logger.debug(
        'deriving %s seed for %r (counter %d)', purpose.value, site_name, counter
    )
    return keyed_digest(master_key, message)
