"""Color bytes for dwm's statuscolors patch.

A color is a single control byte selecting one of dwm's fg/bg color schemes.
Colored text is written as the color byte, the text, and the reset byte.
"""

from collections import namedtuple

RESET = '\x01'
NOT_COLORS = frozenset('\t\n\r')
MIN_COLOR = 1
MAX_COLOR = 31


def is_color(value):
    return (isinstance(value, int) and not isinstance(value, bool)
            and MIN_COLOR <= value <= MAX_COLOR
            and chr(value) not in NOT_COLORS)


def colorize(text, color = None):
    if color is None or not text:
        return text
    return '{}{}{}'.format(chr(color), text, RESET)


def split_color_prefix(text):
    """Split a leading color byte off command output.

    Returns ``(color, rest)``; color is None when the output carries no prefix.
    """
    if text and is_color(ord(text[0])):
        return ord(text[0]), text[1:]
    return None, text


class Coloring(namedtuple('Coloring', 'text icon left_separator right_separator')):
    __slots__ = ()

    def __new__(cls, text = None, icon = None, left_separator = None, right_separator = None):
        return super().__new__(cls, text, icon, left_separator, right_separator)

    def or_default(self, default):
        return Coloring(*(mine if mine is not None else theirs
                          for mine, theirs in zip(self, default)))
