"""
Peak selection on 1D edge-density signals.
"""

from typing import Sequence

import numpy as np


def local_maxima(signal: Sequence[float]) -> list[int]:
    """
    Indices of strict local maxima.

    A sample is a maximum when it is strictly greater than both neighbours.
    The first and last samples are never candidates.
    """
    values = np.asarray(signal, dtype=np.float64)
    if values.size < 3:
        return []

    middle = values[1:-1]
    mask = (middle > values[:-2]) & (middle > values[2:])
    return (np.nonzero(mask)[0] + 1).tolist()


def find_strongest_peaks(
    signal: Sequence[float],
    min_distance: int,
    max_peaks: int,
) -> list[int]:
    """
    Select the strongest peaks that are at least ``min_distance`` apart.

    Candidates are taken in order of descending value (ties keep their
    position order) and accepted only if they are ``min_distance`` or more
    away from every peak accepted so far.

    Args:
        signal: 1D signal.
        min_distance: Minimum spacing between accepted peaks, in samples.
        max_peaks: Maximum number of peaks to accept.

    Returns:
        Accepted peak indices, sorted ascending.
    """
    if max_peaks <= 0:
        return []

    values = np.asarray(signal, dtype=np.float64)
    candidates = local_maxima(values)
    candidates.sort(key=lambda index: values[index], reverse=True)

    selected: list[int] = []
    for index in candidates:
        if all(abs(index - peak) >= min_distance for peak in selected):
            selected.append(index)
            if len(selected) >= max_peaks:
                break

    return sorted(selected)
