"""
Password templates and rendering of site seeds into passwords.
"""

import math
import os
from types import MappingProxyType

from mpw.crypto import LATEST, Version, get_version, parameters
from mpw.exceptions import SeedTooShort, UnsupportedClass

#: The characters that each template code can render to.
#:
#: - `V`: uppercase vowel
#: - `C`: uppercase consonant
#: - `v`: lowercase vowel
#: - `c`: lowercase consonant
#: - `A`: uppercase letter
#: - `a`: letter of any case
#: - `n`: digit
#: - `o`: symbol
#: - `x`: letter of any case, digit or symbol
CHARACTERS = MappingProxyType(
    {
        'V': 'AEIOU',
        'C': 'BCDFGHJKLMNPQRSTVWXYZ',
        'v': 'aeiou',
        'c': 'bcdfghjklmnpqrstvwxyz',
        'A': 'AEIOUBCDFGHJKLMNPQRSTVWXYZ',
        'a': 'AEIOUaeiouBCDFGHJKLMNPQRSTVWXYZbcdfghjklmnpqrstvwxyz',
        'n': '0123456789',
        'o': "@&%?,=[]_:-+*$#!'^~;()/.",
        'x': 'AEIOUaeiouBCDFGHJKLMNPQRSTVWXYZbcdfghjklmnpqrstvwxyz0123456789!@#$%^&*()',
        ' ': ' ',
    }
)

TEMPLATES = MappingProxyType(
    {
        'maximum': ('anoxxxxxxxxxxxxxxxxx', 'axxxxxxxxxxxxxxxxxno'),
        'long': (
            'CvcvnoCvcvCvcv',
            'CvcvCvcvnoCvcv',
            'CvcvCvcvCvcvno',
            'CvccnoCvcvCvcv',
            'CvccCvcvnoCvcv',
            'CvccCvcvCvcvno',
            'CvcvnoCvccCvcv',
            'CvcvCvccnoCvcv',
            'CvcvCvccCvcvno',
            'CvcvnoCvcvCvcc',
            'CvcvCvcvnoCvcc',
            'CvcvCvcvCvccno',
            'CvccnoCvccCvcv',
            'CvccCvccnoCvcv',
            'CvccCvccCvcvno',
            'CvcvnoCvccCvcc',
            'CvcvCvccnoCvcc',
            'CvcvCvccCvccno',
            'CvccnoCvcvCvcc',
            'CvccCvcvnoCvcc',
            'CvccCvcvCvccno',
        ),
        'medium': ('CvcnoCvc', 'CvcCvcno'),
        'basic': ('aaanaaan', 'aannaaan', 'aaannaaa'),
        'short': ('Cvcn',),
        'pin': ('nnnn',),
        'name': ('cvccvcvcv',),
        'phrase': ('cvcc cvc cvccvcv cvc', 'cvc cvccvcvcv cvcv', 'cv cvccv cvc cvcvccv'),
    }
)

#: Every version shares the same tables.
TEMPLATES_BY_VERSION = MappingProxyType(
    {version: TEMPLATES for version in Version}
)

ALIASES = MappingProxyType(
    {
        'x': 'maximum',
        'max': 'maximum',
        'l': 'long',
        'm': 'medium',
        'med': 'medium',
        'b': 'basic',
        's': 'short',
        'i': 'pin',
        'n': 'name',
        'p': 'phrase',
    }
)

DESCRIPTIONS = MappingProxyType(
    {
        'maximum': '20 characters, contains symbols.',
        'long': 'Copy-friendly, 14 characters, contains symbols.',
        'medium': 'Copy-friendly, 8 characters, contains symbols.',
        'basic': '8 characters, no symbols.',
        'short': 'Copy-friendly, 4 characters, no symbols.',
        'pin': '4 numbers.',
        'name': '9 letter name.',
        'phrase': '20 character sentence.',
    }
)

RANDOM_SEED_LENGTH = 21


def resolve_class(name):
    """
    Resolve a password class name or alias to its canonical name.

    Args:
        name (str): the class name, for example `'long'` or `'l'`.

    Returns:
        str: the canonical class name.

    Raises:
        UnsupportedClass: if the name is not a known class.
    """
    name = ALIASES.get(name, name)

    if name not in TEMPLATES:
        raise UnsupportedClass(f'unsupported password class {name!r}')

    return name


def templates(password_class, version=LATEST):
    """
    Return the ordered templates for a password class.

    Args:
        password_class (str): the password class.
        version (Version): the algorithm version.

    Returns:
        tuple: the templates.

    Raises:
        UnsupportedClass: if the class has no templates for the version.
    """
    table = TEMPLATES_BY_VERSION[get_version(version)]

    try:
        return table[ALIASES.get(password_class, password_class)]
    except KeyError:
        raise UnsupportedClass(
            f'password class {password_class!r} is not defined for version {version}'
        )


def seed_value(byte, legacy=False):
    """
    Return the integer that a seed byte contributes to a selection.

    Version 0 read seed bytes as signed characters and byte-swapped them as 16
    bit integers before taking the modulo.

    Args:
        byte (int): the seed byte.
        legacy (bool): whether to apply the version 0 decoding.

    Returns:
        int: the value to take the modulo of.
    """
    if not legacy:
        return byte

    if byte < 0x80:
        return byte << 8

    return (byte << 8) | 0xFF


def render_template(template, seed, legacy=False):
    """
    Render a single template with a seed.

    The first seed byte is reserved for template selection, so character `i`
    uses seed byte `i + 1`.

    Args:
        template (str): the template codes.
        seed (bytes): the seed.
        legacy (bool): whether to apply the version 0 decoding.

    Returns:
        str: the password.
    """
    if len(template) >= len(seed):
        raise SeedTooShort(
            f'template too long for given seed: {len(template)} >= {len(seed)}'
        )

    password = []

    for i, code in enumerate(template):
        chars = CHARACTERS[code]
        password.append(chars[seed_value(seed[i + 1], legacy) % len(chars)])

    return ''.join(password)


def select(seed, password_class, version=LATEST):
    """
    Select the template for a seed.

    Args:
        seed (bytes): the seed.
        password_class (str): the password class.
        version (Version): the algorithm version.

    Returns:
        str: the selected template.
    """
    choices = templates(password_class, version)
    legacy = parameters(version).legacy_seed
    return choices[seed_value(seed[0], legacy) % len(choices)]


def render(seed, password_class, version=LATEST):
    """
    Render a site seed as a password.

    Args:
        seed (bytes): the site seed.
        password_class (str): the password class, for example `'long'`.
        version (Version): the algorithm version.

    Returns:
        str: the password.

    Raises:
        UnsupportedClass: if the class has no templates for the version.
    """
    template = select(seed, password_class, version)
    return render_template(template, seed, legacy=parameters(version).legacy_seed)


def random_password(password_class='long'):
    """
    Render a password for a class from random bytes.

    Args:
        password_class (str): the password class.

    Returns:
        str: a random password.
    """
    return render(os.urandom(RANDOM_SEED_LENGTH), password_class)


def entropy(template):
    """
    Calculate the bits of entropy of a template.

    Args:
        template (str): the template codes.

    Returns:
        float: the bits of entropy.
    """
    return sum(math.log2(len(CHARACTERS[code])) for code in template)


def min_entropy(password_class):
    """
    Return the entropy of the weakest template in a password class.
    """
    return min(entropy(t) for t in templates(password_class))
