from pytest import mark, raises

from mpw.exceptions import AuthenticationFailed
from mpw.secret import SecretBuffer
from mpw.vault import (
    NONCE_LENGTH,
    PAD_LENGTH,
    TAG_LENGTH,
    Sealed,
    decrypt,
    encrypt,
    pad,
    storage_key,
    unpad,
)

KEY = SecretBuffer(bytes(range(64)))
OTHER_KEY = SecretBuffer(bytes(range(1, 65)))


def test_pad_short():
    padded = pad(b'\x01\x02\x03\x04\x05')
    assert isinstance(padded, SecretBuffer)
    assert padded == bytearray([1, 2, 3, 4, 5] + [15] * 15)
    assert unpad(padded) == b'\x01\x02\x03\x04\x05'


@mark.parametrize('n', [PAD_LENGTH, PAD_LENGTH + 1])
def test_pad_long(n):
    padded = pad(b'd' * n)
    assert padded == b'd' * n + b'\x00'
    assert unpad(padded) == b'd' * n


def test_unpad_view_is_not_copied():
    padded = bytearray(b'abc' + bytes([17]) * 17)
    view = memoryview(padded)
    unpadded = unpad(view)
    assert isinstance(unpadded, memoryview)
    assert unpadded.obj is padded
    assert unpadded == b'abc'


def test_encrypt_secret_buffer():
    secret = SecretBuffer(b'hunter2')
    sealed = encrypt(KEY, 'site.com', secret)
    assert not secret.wiped

    with decrypt(KEY, 'site.com', sealed) as plaintext:
        assert plaintext == secret


def test_storage_key():
    key = storage_key(KEY, 'site.com')
    assert len(key) == 32
    assert key == storage_key(KEY, 'site.com')
    assert key != storage_key(KEY, 'other.com')


@mark.parametrize('secret', [b'x', b'hunter2', b's' * 19, b's' * 20, b's' * 21, b'y' * 500])
def test_encrypt_and_decrypt(secret):
    sealed = encrypt(KEY, 'site.com', secret)
    assert len(sealed.nonce) == NONCE_LENGTH
    assert len(sealed.ciphertext) == max(len(secret) + 1, PAD_LENGTH) + TAG_LENGTH

    with decrypt(KEY, 'site.com', sealed) as plaintext:
        assert bytes(plaintext) == secret


def test_encrypt_text():
    sealed = encrypt(KEY, 'site.com', 'pässword')
    assert decrypt(KEY, 'site.com', sealed).decode() == 'pässword'


def test_encrypt_short_secrets_hide_length():
    assert len(encrypt(KEY, 'site.com', b'a').ciphertext) == len(
        encrypt(KEY, 'site.com', b'abcdefgh').ciphertext
    )


def test_encrypt_fresh_nonce():
    first = encrypt(KEY, 'site.com', b'secret')
    second = encrypt(KEY, 'site.com', b'secret')
    assert first.nonce != second.nonce
    assert first.ciphertext != second.ciphertext


def test_encrypt_empty():
    with raises(ValueError):
        encrypt(KEY, 'site.com', b'')


def test_decrypt_wrong_key():
    sealed = encrypt(KEY, 'site.com', b'secret')

    with raises(AuthenticationFailed):
        decrypt(OTHER_KEY, 'site.com', sealed)


def test_decrypt_wrong_site():
    sealed = encrypt(KEY, 'site.com', b'secret')

    with raises(AuthenticationFailed):
        decrypt(KEY, 'other.com', sealed)


def test_decrypt_tampered():
    sealed = encrypt(KEY, 'site.com', b'secret')
    ciphertext = bytearray(sealed.ciphertext)
    ciphertext[0] ^= 1

    with raises(AuthenticationFailed):
        decrypt(KEY, 'site.com', Sealed(bytes(ciphertext), sealed.nonce))

    with raises(AuthenticationFailed):
        decrypt(KEY, 'site.com', Sealed(sealed.ciphertext, bytes(NONCE_LENGTH)))


def test_sealed_encode_and_decode():
    sealed = encrypt(KEY, 'site.com', b'secret')
    encoded = sealed.encode()
    assert isinstance(encoded, str)
    assert Sealed.decode(encoded) == sealed


@mark.parametrize('encoded', ['not base64!', 'c2hvcnQ=', 'ü'])
def test_sealed_decode_invalid(encoded):
    with raises(ValueError):
        Sealed.decode(encoded)
