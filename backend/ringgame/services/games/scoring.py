from typing import Dict, List, Optional, Sequence, Tuple

from .points import points_for_length

# (start slot, length). A run may wrap, so start + length can exceed the ring.
Run = Tuple[int, int]


def _filled(slot: Optional[int]) -> bool:
    return slot is not None


def compute_runs(slots: Sequence[Optional[int]]) -> List[Run]:
    """Maximal runs of contiguous filled slots on the ring.

    One pass records run boundaries; if the run that opened at slot 0 is
    joined by a run still open at the last slot, the trailing run is folded
    into the leading one. A completely filled ring is one run of full length.
    """
    size = len(slots)
    if size and all(_filled(s) for s in slots):
        return [(0, size)]

    runs: List[Run] = []
    start = None
    for i, slot in enumerate(slots):
        if _filled(slot):
            if start is None:
                start = i
        elif start is not None:
            runs.append((start, i - start))
            start = None
    if start is not None:
        runs.append((start, size - start))

    if len(runs) > 1 and runs[0][0] == 0 and runs[-1][0] + runs[-1][1] == size:
        tail_start, tail_len = runs.pop()
        runs[0] = (tail_start, tail_len + runs[0][1])
    return runs


def compute_scoring_groups(slots: Sequence[Optional[int]]) -> Dict[int, int]:
    """slot index -> group id for every slot in a run of two or more.

    Single filled slots are left out; they score nothing and are not
    highlighted. Group ids count up from 0 in order of each run's start.
    """
    size = len(slots)
    groups: Dict[int, int] = {}
    group_id = 0
    for start, length in sorted(compute_runs(slots)):
        if length < 2:
            continue
        for offset in range(length):
            groups[(start + offset) % size] = group_id
        group_id += 1
    return groups


def compute_score(slots: Sequence[Optional[int]]) -> int:
    """Total points for a board, derived from slot contents alone."""
    return sum(points_for_length(length) for _, length in compute_runs(slots))
