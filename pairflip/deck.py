import random
from typing import List, Optional, Sequence

from .classes import CardFace
from .settings import DEFAULT_COLORS, DEFAULT_SYMBOLS, Color


def generate_pairs(total_cards: int,
                   symbols: Sequence[str] = DEFAULT_SYMBOLS,
                   colors: Sequence[Color] = DEFAULT_COLORS,
                   rng: Optional[random.Random] = None) -> List[CardFace]:
    """
    Build a shuffled deck where every face appears exactly twice.

    Pair slot i gets symbol i and color i of the palette, wrapping around
    when there are more pairs than palette entries.

    Args:
        total_cards: Number of cards on the board, must be even and positive
        symbols: Symbol palette
        colors: Color palette
        rng: Random source, defaults to the module-level generator

    Returns:
        List of faces in board order
    """
    if total_cards <= 0 or total_cards % 2 != 0:
        raise ValueError("Total number of cards must be even and positive")
    if not symbols or not colors:
        raise ValueError("Symbol and color palettes must not be empty")

    rng = rng or random
    faces = []
    for i in range(total_cards // 2):
        face = CardFace(symbols[i % len(symbols)], tuple(colors[i % len(colors)]))
        faces.append(face)
        faces.append(face)

    # Fisher-Yates
    for i in range(len(faces)):
        j = rng.randint(i, len(faces) - 1)
        faces[i], faces[j] = faces[j], faces[i]

    return faces
