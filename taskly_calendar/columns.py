"""Greedy column assignment for overlapping calendar intervals."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from taskly_calendar.schema import CalendarInterval, ColumnAssignment


def _sort_key(interval: CalendarInterval) -> tuple[int, int]:
    # Earlier start first; on ties the longer block claims the lower column.
    return (interval.start_ms, -interval.duration_minutes)


def overlap_matrix(intervals: Sequence[CalendarInterval]) -> np.ndarray:
    """Return the pairwise half-open overlap matrix (diagonal is False)."""

    starts = np.asarray([interval.start_ms for interval in intervals], dtype=np.int64)
    ends = np.asarray([interval.end_ms for interval in intervals], dtype=np.int64)
    matrix = (starts[:, None] < ends[None, :]) & (starts[None, :] < ends[:, None])
    np.fill_diagonal(matrix, False)
    return matrix


def overlap_clusters(matrix: np.ndarray) -> list[int]:
    """Label each row with the index of its connected overlap cluster."""

    size = matrix.shape[0]
    labels = [-1] * size
    cluster = 0
    for seed in range(size):
        if labels[seed] != -1:
            continue
        labels[seed] = cluster
        stack = [seed]
        while stack:
            node = stack.pop()
            for peer in np.flatnonzero(matrix[node]):
                if labels[peer] == -1:
                    labels[peer] = cluster
                    stack.append(int(peer))
        cluster += 1
    return labels


def _greedy_columns(ordered: Sequence[CalendarInterval]) -> list[int]:
    column_ends: list[int] = []
    columns: list[int] = []
    for interval in ordered:
        start = interval.start_ms
        for index, end in enumerate(column_ends):
            if start >= end:
                column_ends[index] = interval.end_ms
                columns.append(index)
                break
        else:
            column_ends.append(interval.end_ms)
            columns.append(len(column_ends) - 1)
    return columns


def assign_columns(intervals: Sequence[CalendarInterval]) -> list[ColumnAssignment]:
    """Assign each interval of one day to a display column.

    Intervals are placed greedily in (start, longest-first) order into the first
    column whose last block has ended; back-to-back blocks share a column. Every
    assignment reports the width of its transitive overlap cluster as
    `total_columns`. Output follows the sorted order.
    """

    if not intervals:
        return []

    ordered = sorted(intervals, key=_sort_key)
    columns = _greedy_columns(ordered)

    labels = overlap_clusters(overlap_matrix(ordered))
    widest: dict[int, int] = {}
    for label, column in zip(labels, columns):
        widest[label] = max(widest.get(label, 0), column)

    return [
        ColumnAssignment(interval=interval, column=column, total_columns=widest[label] + 1)
        for interval, column, label in zip(ordered, columns, labels)
    ]


def column_count(assignments: Sequence[ColumnAssignment]) -> int:
    """Number of columns used by a day layout."""

    return max((assignment.column for assignment in assignments), default=-1) + 1
