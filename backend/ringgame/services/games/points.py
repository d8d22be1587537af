"""Run length -> points lookup."""

from .errors import InvalidConfig

# Strictly superlinear; an isolated tile scores 0.
POINT_TABLE = {
    1: 0, 2: 1, 3: 3, 4: 5, 5: 7,
    6: 9, 7: 11, 8: 15, 9: 20, 10: 25,
    11: 30, 12: 35, 13: 40, 14: 50, 15: 60,
    16: 70, 17: 85, 18: 100, 19: 150, 20: 300,
}

MAX_RUN_LENGTH = max(POINT_TABLE)


def points_for_length(length: int) -> int:
    if length not in POINT_TABLE:
        raise InvalidConfig(f'No points defined for a run of length {length}')
    return POINT_TABLE[length]


def point_table_rows():
    """Rows of (length, points) in ascending length, for score-table displays."""
    return [{'length': length, 'points': pts} for length, pts in sorted(POINT_TABLE.items())]
