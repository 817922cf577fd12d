"""kioku: spaced-repetition scheduling for multi-exam study."""

from kioku.consts import VERSION

__version__ = VERSION
