"""Shareable result text.

The move count is drawn as pixel art with a 3x5 digit font, one blank column
between digits, followed by a one-line caption. Output depends only on
(moves, time, mode).
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .state import Mode

logger = logging.getLogger(__name__)

# 5 rows x 3 columns per digit, '#' = lit
DIGIT_FONT = {
    '0': ('###', '#.#', '#.#', '#.#', '###'),
    '1': ('.#.', '##.', '.#.', '.#.', '###'),
    '2': ('###', '..#', '###', '#..', '###'),
    '3': ('###', '..#', '.##', '..#', '###'),
    '4': ('#.#', '#.#', '###', '..#', '..#'),
    '5': ('###', '#..', '###', '..#', '###'),
    '6': ('###', '#..', '###', '#.#', '###'),
    '7': ('###', '..#', '.#.', '.#.', '.#.'),
    '8': ('###', '#.#', '###', '#.#', '###'),
    '9': ('###', '#.#', '###', '..#', '###'),
}
ROWS = 5

# (on, off) glyph per mode
GLYPHS = {
    Mode.NORMAL: ('🟩', '⬜'),
    Mode.HARD: ('🟪', '⬛'),
}

CAPTIONS = {
    Mode.NORMAL: 'Memory Game',
    Mode.HARD: 'Memory Game (Hard Mode)',
}


def pixel_rows(moves: int) -> list:
    """Rows of '#'/'.' for the decimal move count."""
    digits = str(max(0, int(moves)))
    rows = []
    for r in range(ROWS):
        rows.append('.'.join(DIGIT_FONT[d][r] for d in digits))
    return rows


def share_text(moves: int, time: int, mode) -> str:
    mode = Mode.parse(mode)
    on, off = GLYPHS[mode]
    art = [''.join(on if px == '#' else off for px in row) for row in pixel_rows(moves)]
    caption = f"{CAPTIONS[mode]} - {moves} moves in {time}s"
    return '\n'.join(art) + '\n\n' + caption


@dataclass(frozen=True)
class ShareOutcome:
    status: str  # copied | copied_fallback | manual
    text: str
    message: str

    def to_dict(self):
        return {'status': self.status, 'text': self.text, 'message': self.message}


Sink = Callable[[str], None]


def deliver_share(text: str, primary: Optional[Sink] = None, fallback: Optional[Sink] = None) -> ShareOutcome:
    """Hand ``text`` to the primary sink, else the fallback, else show it."""
    if primary is not None:
        try:
            primary(text)
            return ShareOutcome('copied', text, 'Result copied to clipboard!')
        except Exception as exc:
            logger.warning(f"[share-primary-failed] {exc}")
    if fallback is not None:
        try:
            fallback(text)
            return ShareOutcome('copied_fallback', text, 'Result copied to clipboard!')
        except Exception as exc:
            logger.warning(f"[share-fallback-failed] {exc}")
    return ShareOutcome('manual', text, f"Could not copy automatically. Copy your result:\n\n{text}")
