"""
Left/right selection for matching questions.

The two columns are rendered from one fixed-position pair list. Pairing a term
with a definition moves the definition value into the term's row by swapping
the definition slots of two rows, so any sequence of clicks only permutes the
definitions already present.
"""

from __future__ import annotations

from dataclasses import dataclass

Pair = tuple[str, str]


def swap_definitions(pairs: list[Pair], first: int, second: int) -> list[Pair]:
    """Return a copy of ``pairs`` with the definitions of two rows exchanged."""
    if not (0 <= first < len(pairs) and 0 <= second < len(pairs)):
        raise IndexError(f"Row out of range: {first}, {second}")
    swapped = list(pairs)
    if first == second:
        return swapped
    swapped[first] = (pairs[first][0], pairs[second][1])
    swapped[second] = (pairs[second][0], pairs[first][1])
    return swapped


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one click.

    ``pairs`` is the new pair list when a swap happened, otherwise ``None``.
    ``left``/``right`` are the rows involved in the swap.
    """

    pairs: list[Pair] | None = None
    left: int | None = None
    right: int | None = None

    @property
    def swapped(self) -> bool:
        return self.pairs is not None


@dataclass
class MatchingSelection:
    """Current selection in each column; reset whenever the question changes."""

    selected_left: int | None = None
    selected_right: int | None = None

    def reset(self) -> None:
        self.selected_left = None
        self.selected_right = None

    def click_left(self, index: int, pairs: list[Pair]) -> MatchResult:
        """Handle a click on the term in row ``index``."""
        _check_row(index, pairs)
        if self.selected_left == index:
            self.selected_left = None
            return MatchResult()
        if self.selected_right is not None:
            right = self.selected_right
            swapped = swap_definitions(pairs, index, right)
            self.reset()
            return MatchResult(pairs=swapped, left=index, right=right)
        self.selected_left = index
        return MatchResult()

    def click_right(self, index: int, pairs: list[Pair]) -> MatchResult:
        """Handle a click on the definition in row ``index``."""
        _check_row(index, pairs)
        if self.selected_right == index:
            self.selected_right = None
            return MatchResult()
        if self.selected_left is not None:
            left = self.selected_left
            swapped = swap_definitions(pairs, left, index)
            self.reset()
            return MatchResult(pairs=swapped, left=left, right=index)
        self.selected_right = index
        return MatchResult()

    def to_dict(self) -> dict[str, int | None]:
        return {"selectedLeft": self.selected_left, "selectedRight": self.selected_right}


def _check_row(index: int, pairs: list[Pair]) -> None:
    if not 0 <= index < len(pairs):
        raise IndexError(f"Row {index} is out of range for {len(pairs)} pairs")
