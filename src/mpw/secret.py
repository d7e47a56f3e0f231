"""
A container for sensitive bytes that can be wiped after use.
"""


def to_bytes(value):
    """
    Return the UTF-8 bytes for the given text, or the bytes themselves.

    Args:
        value (str, bytes, bytearray, SecretBuffer): the value.

    Returns:
        bytes: the encoded value.
    """
    if isinstance(value, str):
        return value.encode('utf-8')

    return bytes(value)


class SecretBuffer:
    """
    A mutable byte buffer that is overwritten with zeros when wiped.

    Use it as a context manager so that it is wiped on every exit path:

        with SecretBuffer(b'hunter2') as secret:
            ...
    """

    def __init__(self, data=b''):
        """
        Create a new SecretBuffer holding a copy of the given data.

        Args:
            data (str, bytes, bytearray): the sensitive data. Text is encoded
                as UTF-8.
        """
        if isinstance(data, str):
            data = data.encode('utf-8')

        self._data = bytearray(data)
        self._wiped = False

    @classmethod
    def zeros(cls, length):
        """
        Create a new zero filled SecretBuffer.

        Args:
            length (int): the size of the buffer.

        Returns:
            SecretBuffer: the new buffer.
        """
        return cls(bytes(length))

    def _check(self):
        if self._wiped:
            raise ValueError('secret buffer has been wiped')

    @property
    def wiped(self):
        """
        Whether this buffer has been wiped.
        """
        return self._wiped

    def view(self):
        """
        Return a memoryview over the buffer contents.

        Returns:
            memoryview: a view that is invalid after the buffer is wiped.
        """
        self._check()
        return memoryview(self._data)

    def decode(self, encoding='utf-8'):
        """
        Decode the buffer contents as text.

        Args:
            encoding (str): the text encoding.

        Returns:
            str: the decoded text.
        """
        self._check()
        return self._data.decode(encoding)

    def wipe(self):
        """
        Overwrite the buffer contents with zeros.
        """
        for i in range(len(self._data)):
            self._data[i] = 0

        self._wiped = True

    def __enter__(self):
        self._check()
        return self

    def __exit__(self, *exc_info):
        self.wipe()

    def __bytes__(self):
        self._check()
        return bytes(self._data)

    def __len__(self):
        return len(self._data)

    def __getitem__(self, item):
        self._check()
        return self._data[item]

    def __eq__(self, other):
        if isinstance(other, SecretBuffer):
            other = bytes(other)

        if not isinstance(other, (bytes, bytearray)):
            return NotImplemented

        return bytes(self) == bytes(other)

    __hash__ = None

    def __repr__(self):
        """
        Return a representation that never shows the contents.
        """
        state = 'wiped' if self._wiped else f'{len(self._data)} bytes'
        return f'{self.__class__.__name__}(<{state}>)'
