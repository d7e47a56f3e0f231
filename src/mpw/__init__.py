"""
mpw is a stateless password manager implementing the Master Password algorithm.
"""

__title__ = 'mpw'
__version__ = '1.0.0'
__url__ = 'https://masterpassword.app'
__author__ = 'The mpw developers'
__license__ = 'MIT'
__description__ = 'Deterministic site passwords from a full name and master password.'

from mpw.core import Config, Session, Site
from mpw.crypto import LATEST, Purpose, Version, derive_seed, stretch
from mpw.identicon import Identicon, identicon
from mpw.secret import SecretBuffer
from mpw.template import render
from mpw.vault import Sealed, decrypt, encrypt

__all__ = [
    'Config',
    'Identicon',
    'LATEST',
    'Purpose',
    'Sealed',
    'SecretBuffer',
    'Session',
    'Site',
    'Version',
    'decrypt',
    'derive_seed',
    'encrypt',
    'exceptions',
    'identicon',
    'render',
    'stretch',
]
