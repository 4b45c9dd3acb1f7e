"""
Generic shortest-edit-script engine.

Computes a minimal edit script (fewest inserted plus deleted items)
between two sequences of comparable items. The same routine serves
line-level and token-level comparison; only the item equality differs.

Strategy:
- Common prefix and suffix are matched first.
- The remaining region uses Myers' O(ND) algorithm in its linear-space
  (middle snake) form, so time is proportional to (N + M) * D and
  memory to N + M, where D is the edit distance.

Output is canonical: ops are coalesced into ranges and within every
change block all deletions come before all insertions. Where several
minimal scripts exist the middle snake search picks one from the
region's content alone, so the same region always gets the same
alignment whatever surrounds it.
"""

from __future__ import annotations

import logging
import operator
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

from devcompare.core.cancellation import CancellationToken
from devcompare.core.errors import EditScriptTooLarge
from devcompare.core.models import EditOp, EditScript, EditTag


T = TypeVar('T')


class _ScriptBuilder:
    """Accumulates unit moves into a coalesced, canonical edit script."""

    def __init__(self):
        self.ops: EditScript = []
        self._x = 0
        self._y = 0
        self._equal = 0
        self._deleted = 0
        self._inserted = 0

    def equal(self, count: int = 1) -> None:
        if count <= 0:
            return
        self._flush_changes()
        self._equal += count

    def delete(self, count: int = 1) -> None:
        if count <= 0:
            return
        self._flush_equal()
        self._deleted += count

    def insert(self, count: int = 1) -> None:
        if count <= 0:
            return
        self._flush_equal()
        self._inserted += count

    def build(self) -> EditScript:
        self._flush_equal()
        self._flush_changes()
        return self.ops

    def _flush_equal(self) -> None:
        if self._equal:
            x, y, n = self._x, self._y, self._equal
            self.ops.append(EditOp(EditTag.EQUAL, x, x + n, y, y + n))
            self._x += n
            self._y += n
            self._equal = 0

    def _flush_changes(self) -> None:
        # Deletions first, then insertions at the same position
        if self._deleted:
            x, y, n = self._x, self._y, self._deleted
            self.ops.append(EditOp(EditTag.DELETE, x, x + n, y, y))
            self._x += n
            self._deleted = 0
        if self._inserted:
            x, y, n = self._x, self._y, self._inserted
            self.ops.append(EditOp(EditTag.INSERT, x, x, y, y + n))
            self._y += n
            self._inserted = 0


class EditScriptEngine:
    """
    Shortest edit script between two sequences.

    Usage:
        engine = EditScriptEngine(old, new, key=str.casefold)
        script = engine.run()
    """

    def __init__(
        self,
        old: Sequence[Any],
        new: Sequence[Any],
        equals: Optional[Callable[[Any, Any], bool]] = None,
        key: Optional[Callable[[Any], Any]] = None,
        max_edit_distance: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None
    ):
        if equals is not None and key is not None:
            raise ValueError("Pass either equals or key, not both")
        if max_edit_distance is not None and max_edit_distance < 0:
            raise ValueError("max_edit_distance must be non-negative")

        if key is not None:
            self.a = [key(item) for item in old]
            self.b = [key(item) for item in new]
        else:
            self.a = old
            self.b = new
        self.eq = equals or operator.eq
        self.max_edit_distance = max_edit_distance
        self.cancel_token = cancel_token
        self._builder = _ScriptBuilder()

    def run(self) -> EditScript:
        """Compute the edit script."""
        a, b, eq = self.a, self.b, self.eq
        n, m = len(a), len(b)

        if self.max_edit_distance is not None and abs(n - m) > self.max_edit_distance:
            raise EditScriptTooLarge(self.max_edit_distance, n, m)

        prefix = 0
        while prefix < n and prefix < m and eq(a[prefix], b[prefix]):
            prefix += 1

        suffix = 0
        while (suffix < n - prefix and suffix < m - prefix
               and eq(a[n - 1 - suffix], b[m - 1 - suffix])):
            suffix += 1

        self._builder.equal(prefix)
        self._diff_region(prefix, prefix, n - suffix, m - suffix)
        self._builder.equal(suffix)

        script = self._builder.build()
        self._check_distance(edit_distance(script))
        return script

    # -------------------------------------------------------------------------
    # Region dispatch
    # -------------------------------------------------------------------------

    def _diff_region(self, left: int, top: int, right: int, bottom: int) -> None:
        width = right - left
        height = bottom - top

        if width == 0 or height == 0:
            self._check_distance(width + height)
            self._builder.delete(width)
            self._builder.insert(height)
        else:
            logging.debug(f"EditScriptEngine - Myers on {width}x{height} region")
            self._myers_diff(left, top, right, bottom)

    def _check_distance(self, distance: int) -> None:
        if self.max_edit_distance is not None and distance > self.max_edit_distance:
            raise EditScriptTooLarge(self.max_edit_distance, len(self.a), len(self.b))

    # -------------------------------------------------------------------------
    # Myers, linear space
    # -------------------------------------------------------------------------

    def _myers_diff(self, left: int, top: int, right: int, bottom: int) -> None:
        limit = None
        if self.max_edit_distance is not None:
            limit = (self.max_edit_distance + 1) // 2

        path = self._find_path(left, top, right, bottom, limit)
        if path is None:
            return

        for (x1, y1), (x2, y2) in zip(path, path[1:]):
            x1, y1 = self._walk_diagonal(x1, y1, x2, y2)
            if x2 - x1 > y2 - y1:
                self._builder.delete()
                x1 += 1
            elif x2 - x1 < y2 - y1:
                self._builder.insert()
                y1 += 1
            self._walk_diagonal(x1, y1, x2, y2)

    def _walk_diagonal(self, x1: int, y1: int, x2: int, y2: int) -> tuple[int, int]:
        a, b, eq = self.a, self.b, self.eq
        while x1 < x2 and y1 < y2 and eq(a[x1], b[y1]):
            self._builder.equal()
            x1 += 1
            y1 += 1
        return x1, y1

    def _find_path(
        self,
        left: int,
        top: int,
        right: int,
        bottom: int,
        limit: Optional[int] = None
    ) -> Optional[list[tuple[int, int]]]:
        """Points of a shortest path through the box, split at middle snakes."""
        snake = self._middle_snake(left, top, right, bottom, limit)
        if snake is None:
            return None

        start, finish = snake
        head = self._find_path(left, top, start[0], start[1])
        tail = self._find_path(finish[0], finish[1], right, bottom)

        return (head or [start]) + (tail or [finish])

    def _middle_snake(
        self,
        left: int,
        top: int,
        right: int,
        bottom: int,
        limit: Optional[int] = None
    ) -> Optional[tuple[tuple[int, int], tuple[int, int]]]:
        """
        Find the middle snake of a shortest path through the box.

        Searches forwards from the top-left corner and backwards from
        the bottom-right corner until the two frontiers overlap.

        Args:
            left, top, right, bottom: Box corners in old/new coordinates
            limit: Maximum search depth (half the edit distance)

        Returns:
            Start and end points of the snake, or None for an empty box
        """
        a, b, eq = self.a, self.b, self.eq
        width = right - left
        height = bottom - top
        size = width + height
        if size == 0:
            return None

        delta = width - height
        odd = delta % 2 != 0
        max_d = (size + 1) // 2
        offset = max_d + 1

        # forward[k] = furthest x on diagonal k, backward[c] = furthest y on diagonal c
        forward = [0] * (2 * offset + 1)
        backward = [0] * (2 * offset + 1)
        forward[offset + 1] = left
        backward[offset + 1] = bottom

        for d in range(max_d + 1):
            if limit is not None and d > limit:
                raise EditScriptTooLarge(self.max_edit_distance, len(self.a), len(self.b))
            if self.cancel_token is not None:
                self.cancel_token.raise_if_cancelled()

            for k in range(d, -d - 1, -2):
                if k == -d or (k != d and forward[offset + k - 1] < forward[offset + k + 1]):
                    px = x = forward[offset + k + 1]
                else:
                    px = forward[offset + k - 1]
                    x = px + 1
                y = top + (x - left) - k
                py = y if (d == 0 or x != px) else y - 1
                while x < right and y < bottom and eq(a[x], b[y]):
                    x += 1
                    y += 1
                forward[offset + k] = x

                c = k - delta
                if odd and -(d - 1) <= c <= d - 1 and y >= backward[offset + c]:
                    return (px, py), (x, y)

            for c in range(d, -d - 1, -2):
                k = c + delta
                if c == -d or (c != d and backward[offset + c - 1] > backward[offset + c + 1]):
                    py = y = backward[offset + c + 1]
                else:
                    py = backward[offset + c - 1]
                    y = py - 1
                x = left + (y - top) + k
                px = x if (d == 0 or y != py) else x + 1
                while x > left and y > top and eq(a[x - 1], b[y - 1]):
                    x -= 1
                    y -= 1
                backward[offset + c] = y

                if not odd and -d <= k <= d and x <= forward[offset + k]:
                    return (x, y), (px, py)

        # Unreachable for a non-empty box
        raise RuntimeError("Middle snake not found")


def diff_sequences(
    old: Sequence[T],
    new: Sequence[T],
    equals: Optional[Callable[[T, T], bool]] = None,
    *,
    key: Optional[Callable[[T], Any]] = None,
    max_edit_distance: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None
) -> EditScript:
    """
    Compute a minimal edit script turning `old` into `new`.

    Args:
        old: Original sequence (not modified)
        new: Modified sequence (not modified)
        equals: Item equality predicate (defaults to ==)
        key: Alternative to `equals`; items compare equal when their keys do
        max_edit_distance: Raise EditScriptTooLarge beyond this many edits
        cancel_token: Checked once per search round

    Returns:
        Coalesced list of EditOp. Empty when both sequences are empty.

    Raises:
        EditScriptTooLarge: If the edit distance exceeds the ceiling
        ComparisonCancelled: If cancellation was requested
    """
    return EditScriptEngine(
        old,
        new,
        equals=equals,
        key=key,
        max_edit_distance=max_edit_distance,
        cancel_token=cancel_token
    ).run()


def edit_distance(script: EditScript) -> int:
    """Number of inserted plus deleted items."""
    return sum(op.size for op in script if op.is_change)


def lcs_length(script: EditScript) -> int:
    """Number of items matched by equal ops."""
    return sum(op.size for op in script if not op.is_change)


def iter_change_blocks(
    script: EditScript
) -> Iterator[tuple[Optional[EditOp], Optional[EditOp]]]:
    """
    Yield (delete, insert) for every change block.

    Either element is None when the block only deletes or only inserts.
    """
    i = 0
    while i < len(script):
        op = script[i]
        if op.tag is EditTag.EQUAL:
            i += 1
            continue
        delete = insert = None
        if op.tag is EditTag.DELETE:
            delete = op
            i += 1
            if i < len(script) and script[i].tag is EditTag.INSERT:
                insert = script[i]
                i += 1
        else:
            insert = op
            i += 1
        yield delete, insert
