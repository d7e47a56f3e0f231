from pytest import raises

from mpw.secret import SecretBuffer, to_bytes


def test_to_bytes():
    assert to_bytes('pässword') == 'pässword'.encode('utf-8')
    assert to_bytes(b'password') == b'password'
    assert to_bytes(bytearray(b'password')) == b'password'
    assert to_bytes(SecretBuffer(b'password')) == b'password'


def test_secret_buffer():
    buffer = SecretBuffer('pässword')
    assert bytes(buffer) == 'pässword'.encode('utf-8')
    assert buffer.decode() == 'pässword'
    assert len(buffer) == 9
    assert buffer[0] == ord('p')
    assert buffer == b'p\xc3\xa4ssword'
    assert buffer == SecretBuffer('pässword')
    assert not buffer.wiped


def test_secret_buffer_copies():
    data = bytearray(b'password')
    buffer = SecretBuffer(data)
    buffer.wipe()
    assert data == b'password'


def test_secret_buffer_zeros():
    assert bytes(SecretBuffer.zeros(4)) == b'\x00\x00\x00\x00'


def test_wipe():
    buffer = SecretBuffer(b'password')
    view = buffer.view()
    buffer.wipe()
    assert buffer.wiped
    assert bytes(view) == bytes(8)

    with raises(ValueError):
        bytes(buffer)

    with raises(ValueError):
        buffer.decode()


def test_context_manager():
    with SecretBuffer(b'password') as buffer:
        assert bytes(buffer) == b'password'

    assert buffer.wiped


def test_context_manager_error():
    with raises(RuntimeError):
        with SecretBuffer(b'password') as buffer:
            raise RuntimeError()

    assert buffer.wiped


def test_repr():
    buffer = SecretBuffer(b'password')
    assert repr(buffer) == 'SecretBuffer(<8 bytes>)'
    buffer.wipe()
    assert repr(buffer) == 'SecretBuffer(<wiped>)'
