"""studydeck: spaced-repetition scheduling for flashcard study sessions."""

from studydeck.consts import VERSION

__version__ = VERSION
