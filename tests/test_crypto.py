from functools import lru_cache

from pytest import mark, raises

from mpw.crypto import (
    LATEST,
    MASTER_KEY_LENGTH,
    SEED_LENGTH,
    Purpose,
    Unit,
    Version,
    derive_seed,
    get_version,
    keyed_digest,
    length,
    scope,
    stretch,
    u32,
)
from mpw.exceptions import CounterError, UnsupportedVersion
from mpw.secret import SecretBuffer

JOHN_DOE_MASTER_KEY = bytes(
    [
        27, 177, 181, 88, 106, 115, 177, 174, 150, 213, 214, 9, 53, 44, 141,
        132, 20, 254, 89, 228, 224, 58, 95, 52, 226, 174, 130, 64, 244, 84, 216,
        6, 136, 210, 95, 208, 201, 115, 81, 48, 112, 177, 183, 129, 50, 44, 115,
        10, 86, 114, 44, 225, 160, 170, 250, 210, 194, 87, 12, 220, 20, 36, 120,
        232,
    ]
)

KEY = SecretBuffer(bytes(range(64)))


@lru_cache()
def master_key(full_name, master_password, version=LATEST):
    return bytes(stretch(full_name, master_password, version))


def test_get_version():
    assert get_version(Version.V2) is Version.V2
    assert get_version(3) is Version.V3
    assert get_version('1') is Version.V1
    assert get_version('v0') is Version.V0
    assert LATEST is Version.V3


@mark.parametrize('version', [4, -1, 'four', None])
def test_get_version_unsupported(version):
    with raises(UnsupportedVersion) as e:
        get_version(version)

    assert e.value.version == version


def test_scope():
    scopes = {scope(LATEST, purpose) for purpose in Purpose}
    assert len(scopes) == len(Purpose)
    assert scope(Version.V0, Purpose.AUTHENTICATION) == b'com.lyndir.masterpassword'
    assert scope(Version.V3, Purpose.IDENTIFICATION) == b'com.lyndir.masterpassword.login'
    assert scope(Version.V3, Purpose.RECOVERY) == b'com.lyndir.masterpassword.answer'


def test_u32():
    assert u32(0) == b'\x00\x00\x00\x00'
    assert u32(1) == b'\x00\x00\x00\x01'
    assert u32(0xFFFFFFFF) == b'\xff\xff\xff\xff'

    with raises(CounterError):
        u32(2 ** 32)

    with raises(CounterError):
        u32(-1)


def test_length():
    data = 'Müller'.encode('utf-8')
    assert length(data, Unit.BYTES) == 7
    assert length(data, Unit.CHARACTERS) == 6


def test_keyed_digest():
    # RFC 4231 test case 2
    expected = bytes.fromhex(
        '5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843'
    )
    assert keyed_digest(b'Jefe', b'what do ya want for nothing?') == expected
    assert keyed_digest(SecretBuffer(b'Jefe'), b'what do ya want for nothing?') == expected


def test_keyed_digest_leaves_key_usable():
    key = SecretBuffer(b'Jefe')
    first = keyed_digest(key, b'message')
    assert not key.wiped
    assert keyed_digest(key, b'message') == first
    key.wipe()
    assert key.wiped


def test_stretch():
    key = master_key('John Doe', 'password')
    assert len(key) == MASTER_KEY_LENGTH
    assert key == JOHN_DOE_MASTER_KEY


def test_stretch_wipes_master_password():
    master_password = SecretBuffer(b'password')
    key = stretch('John Doe', master_password)
    assert master_password.wiped
    assert bytes(key) == JOHN_DOE_MASTER_KEY


def test_stretch_ascii_versions_agree():
    # Full name lengths only differ between versions for non-ASCII names.
    assert master_key('John Doe', 'password', Version.V0) == JOHN_DOE_MASTER_KEY


def test_stretch_unicode_versions_differ():
    assert master_key('Max Müller', 'passwort', Version.V2) != master_key(
        'Max Müller', 'passwort', Version.V3
    )


def test_stretch_unsupported_version():
    with raises(UnsupportedVersion):
        stretch('John Doe', 'password', version=7)


def test_derive_seed():
    seed = derive_seed(KEY, 'site.com')
    assert len(seed) == SEED_LENGTH
    assert derive_seed(KEY, 'site.com') == seed
    assert derive_seed(KEY, 'site.com', counter=1, version=LATEST) == seed


def test_derive_seed_counter():
    assert derive_seed(KEY, 'site.com', 1) != derive_seed(KEY, 'site.com', 2)
    assert len(derive_seed(KEY, 'site.com', 0xFFFFFFFF)) == SEED_LENGTH


def test_derive_seed_counter_zero():
    assert derive_seed(KEY, 'site.com', 0) != derive_seed(KEY, 'site.com', 1)
    assert len(derive_seed(KEY, 'site.com', 0)) == SEED_LENGTH


@mark.parametrize('counter', [-1, 2 ** 32])
def test_derive_seed_counter_out_of_range(counter):
    with raises(CounterError):
        derive_seed(KEY, 'site.com', counter)


def test_derive_seed_purposes_independent():
    seeds = {derive_seed(KEY, 'site.com', purpose=purpose) for purpose in Purpose}
    assert len(seeds) == len(Purpose)


def test_derive_seed_context():
    seed = derive_seed(KEY, 'site.com', purpose=Purpose.RECOVERY)
    assert derive_seed(KEY, 'site.com', purpose=Purpose.RECOVERY, context='') == seed
    assert (
        derive_seed(KEY, 'site.com', purpose=Purpose.RECOVERY, context='mother') != seed
    )


def test_derive_seed_site_name_units():
    name = '山东大学.cn'
    v1 = derive_seed(KEY, name, version=Version.V1)
    v2 = derive_seed(KEY, name, version=Version.V2)
    v3 = derive_seed(KEY, name, version=Version.V3)
    assert v1 != v2
    assert v2 == v3

    assert derive_seed(KEY, 'site.com', version=Version.V0) == derive_seed(
        KEY, 'site.com', version=Version.V3
    )


def test_derive_seed_unsupported_version():
    with raises(UnsupportedVersion):
        derive_seed(KEY, 'site.com', version=9)
