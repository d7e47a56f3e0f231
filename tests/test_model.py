import os
import tempfile

import serde
import toml
from pytest import raises
from serde import fields

from mpw.exceptions import ConfigMalformed
from mpw.model import Counter, Encrypted, Model
from mpw.vault import Sealed

SEALED = Sealed(ciphertext=b'c' * 36, nonce=b'n' * 12)


class Example(Model):
    name: fields.Str()
    counter: fields.Optional(Counter)
    encrypted: fields.Optional(Encrypted)


class TestCounter:

    def test_validate(self):
        Counter().validate(0)
        Counter().validate(1)
        Counter().validate(2 ** 32 - 1)

    def test_validate_out_of_range(self):
        with raises(serde.exceptions.ValidationError):
            Counter().validate(-1)

        with raises(serde.exceptions.ValidationError):
            Counter().validate(2 ** 32)


class TestEncrypted:

    def test_serialize(self):
        assert Encrypted().serialize(SEALED) == SEALED.encode()

    def test_deserialize(self):
        assert Encrypted().deserialize(SEALED.encode()) == SEALED


class TestModel:

    def test_to_toml(self):
        example = Example(name='github.com', counter=2, encrypted=SEALED)
        assert toml.loads(example.to_toml()) == {
            'name': 'github.com',
            'counter': 2,
            'encrypted': SEALED.encode(),
        }

    def test_to_toml_omits_none(self):
        assert toml.loads(Example(name='github.com').to_toml()) == {
            'name': 'github.com'
        }

    def test_from_toml(self):
        s = f'name = "github.com"\ncounter = 3\nencrypted = "{SEALED.encode()}"\n'
        assert Example.from_toml(s) == Example(
            name='github.com', counter=3, encrypted=SEALED
        )

    def test_from_toml_invalid_toml(self):
        with raises(ConfigMalformed):
            Example.from_toml('name = ')

    def test_from_toml_invalid_counter(self):
        with raises(ConfigMalformed):
            Example.from_toml('name = "github.com"\ncounter = -1\n')

        with raises(ConfigMalformed):
            Example.from_toml('name = "github.com"\ncounter = "two"\n')

    def test_from_toml_missing_field(self):
        with raises(ConfigMalformed):
            Example.from_toml('counter = 2\n')

    def test_from_toml_invalid_encrypted(self):
        with raises(ConfigMalformed):
            Example.from_toml('name = "github.com"\nencrypted = "c2hvcnQ="\n')

    def test_to_path_and_from_path(self):
        example = Example(name='山东大学.cn', counter=5)

        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, 'mpw.toml')
            example.to_path(path)
            assert Example.from_path(path) == example

    def test_from_path_missing(self):
        with tempfile.TemporaryDirectory() as d:
            with raises(FileNotFoundError):
                Example.from_path(os.path.join(d, 'missing.toml'))

    def test_from_path_invalid_utf8(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, 'mpw.toml')

            with open(path, 'wb') as f:
                f.write(b'name = "\xff\xfe"\n')

            with raises(ConfigMalformed):
                Example.from_path(path)
