"""
Extensions for serde for use in mpw.
"""

import toml
from serde import Model as BaseModel
from serde import fields
from serde.exceptions import SerdeError, ValidationError

from mpw.crypto import MAX_U32
from mpw.exceptions import ConfigMalformed
from mpw.vault import Sealed


class Counter(fields.Int):
    """
    An `Int` `Field` restricted to valid site counters.
    """

    def validate(self, value):
        """
        Validate that the value is an unsigned 32 bit integer.

        Args:
            value (int): the counter.
        """
        super().validate(value)

        if not 0 <= value <= MAX_U32:
            raise ValidationError(f'counter {value!r} is not between 0 and {MAX_U32}')


class Encrypted(fields.Instance):
    """
    A `Field` for a `~mpw.vault.Sealed` secret, serialized as a string.
    """

    def __init__(self, **kwargs):
        """
        Create a new `Encrypted`.

        Args:
            **kwargs: keyword arguments for the `Field` constructor.
        """
        super().__init__(Sealed, **kwargs)

    def serialize(self, value):
        """
        Serialize the given `~mpw.vault.Sealed` as a base64 string.

        Args:
            value (~mpw.vault.Sealed): the encrypted secret.

        Returns:
            str: the encoded bundle.
        """
        return value.encode()

    def deserialize(self, value):
        """
        Deserialize the given base64 string as a `~mpw.vault.Sealed`.

        Args:
            value (str): the encoded bundle.

        Returns:
            ~mpw.vault.Sealed: the encrypted secret.
        """
        return Sealed.decode(value)


class Model(BaseModel):
    """
    A custom Model that reads and writes TOML documents.
    """

    def to_toml(self, **kwargs):
        """
        Dump the model as a TOML string.

        Args:
            **kwargs: extra keyword arguments to pass directly to `toml.dumps`.

        Returns:
            str: a TOML representation of this model.
        """
        return toml.dumps(self.to_dict(), **kwargs)

    def to_path(self, p, **kwargs):
        """
        Dump the model to a file path.

        Args:
            p (str): the file path to write to.
            **kwargs: extra keyword arguments to pass directly to `toml.dumps`.
        """
        with open(p, 'w', encoding='utf-8') as f:
            f.write(self.to_toml(**kwargs))

    @classmethod
    def from_toml(cls, s, **kwargs):
        """
        Load the model from a TOML string.

        Args:
            s (str): the TOML string.
            **kwargs: extra keyword arguments to pass directly to `toml.loads`.

        Returns:
            Model: an instance of this model.

        Raises:
            ConfigMalformed: if the document does not parse or validate.
        """
        try:
            return cls.from_dict(toml.loads(s, **kwargs))
        except (toml.TomlDecodeError, SerdeError, ValueError, TypeError) as e:
            raise ConfigMalformed(f'invalid configuration document: {e}')

    @classmethod
    def from_path(cls, p, **kwargs):
        """
        Load the model from a file path.

        Args:
            p (str): the file path to read from.
            **kwargs: extra keyword arguments to pass directly to `toml.loads`.

        Returns:
            Model: an instance of this model.

        Raises:
            ConfigMalformed: if the file is not UTF-8 or the document does not
                parse or validate.
        """
        with open(p, encoding='utf-8') as f:
            try:
                s = f.read()
            except UnicodeDecodeError as e:
                raise ConfigMalformed(f'invalid configuration document: {e}')

        return cls.from_toml(s, **kwargs)
