"""
Visual fingerprints for a full name and master password.

An identicon lets a user notice a mistyped master password before paying for
key stretching. It is derived from the master password directly and never
from the master key or a site.
"""

from collections import namedtuple

from mpw.crypto import LATEST, get_version, keyed_digest
from mpw.secret import to_bytes

LEFT_ARMS = ('╔', '╚', '╰', '═')
RIGHT_ARMS = ('╗', '╝', '╯', '═')
BODIES = ('█', '░', '▒', '▓', '☺', '☻')
ACCESSORIES = (
    '◈', '◎', '◐', '◑', '◒', '◓', '☀', '☁', '☂', '☃', '☄', '★', '☆', '☎',
    '☏', '⎈', '⌂', '☘', '☢', '☣', '☕', '⌚', '⌛', '⏰', '⚡', '⛄', '⛅', '☔',
    '♔', '♕', '♖', '♗', '♘', '♙', '♚', '♛', '♜', '♝', '♞', '♟', '♨', '♩',
    '♪', '♫', '⚐', '⚑', '⚔', '⚖', '⚙', '⚠', '⌘', '⏎', '✄', '✆', '✈', '✉', '✌',
)
COLORS = ('red', 'green', 'yellow', 'blue', 'magenta', 'cyan', 'mono')


class Identicon(namedtuple('Identicon', 'left_arm body right_arm accessory color')):
    """
    An identicon: four glyphs and a color index between 1 and 7.
    """

    __slots__ = ()

    @property
    def text(self):
        """
        The glyphs of this identicon without color.
        """
        return self.left_arm + self.body + self.right_arm + self.accessory

    @property
    def color_name(self):
        """
        The name of this identicon's color.
        """
        return COLORS[self.color - 1]

    def __str__(self):
        return self.text


def identicon(full_name, master_password, version=LATEST):
    """
    Derive the identicon for a user.

    Args:
        full_name (str): the user's full name.
        master_password (SecretBuffer, str, bytes): the master password. It
            is not wiped.
        version (Version): the algorithm version. All versions share the
            same tables.

    Returns:
        Identicon: the identicon.
    """
    get_version(version)
    seed = keyed_digest(master_password, to_bytes(full_name))

    return Identicon(
        left_arm=LEFT_ARMS[seed[0] % len(LEFT_ARMS)],
        body=BODIES[seed[1] % len(BODIES)],
        right_arm=RIGHT_ARMS[seed[2] % len(RIGHT_ARMS)],
        accessory=ACCESSORIES[seed[3] % len(ACCESSORIES)],
        color=seed[4] % len(COLORS) + 1,
    )
