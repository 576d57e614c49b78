"""Adjacency rules for wave function collapse."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import Iterator, Sequence, Union

from tilealgo.grid import TilemapType

MAX_ELEMENTS = 128

_COMMENT = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)
_LEXEME_PATTERN = re.compile(r"\s*(?:(\[|\(|\]|\)|,)|(-?\d+))")
_CLOSING = {"[": "]", "(": ")"}


class WfcRuleConflict(ValueError):
    """Raised when two rules disagree about whether elements may touch."""


class WfcMode(Enum):
    """How a collapsing element picks one of its possibilities."""

    NON_WEIGHTED = "non_weighted"
    """Pick uniformly at random."""
    WEIGHTED = "weighted"
    """Pick according to per-element weights."""
    CUSTOM_SAMPLER = "custom_sampler"
    """Let a user function choose."""


def _lexemes(text: str) -> Iterator[Union[str, int]]:
    text = _COMMENT.sub(" ", text)
    pos = 0
    end = len(text.rstrip())
    while pos < end:
        match = _LEXEME_PATTERN.match(text, pos)
        if match is None:
            raise ValueError(f"unexpected character in rule text at offset {pos}: {text[pos]!r}")
        punct, number = match.groups()
        yield punct if punct is not None else int(number)
        pos = match.end()


def _parse_value(lexemes: list[Union[str, int]], pos: int) -> tuple[object, int]:
    if pos >= len(lexemes):
        raise ValueError("unexpected end of rule text")
    lexeme = lexemes[pos]
    if isinstance(lexeme, int):
        return lexeme, pos + 1
    if lexeme not in _CLOSING:
        raise ValueError(f"unexpected {lexeme!r} in rule text")
    closing = _CLOSING[lexeme]
    items: list[object] = []
    pos += 1
    while True:
        if pos >= len(lexemes):
            raise ValueError("unterminated list in rule text")
        if lexemes[pos] == closing:
            return items, pos + 1
        item, pos = _parse_value(lexemes, pos)
        items.append(item)
        if pos >= len(lexemes):
            raise ValueError("unterminated list in rule text")
        if lexemes[pos] == ",":
            pos += 1
        elif lexemes[pos] != closing:
            raise ValueError(f"expected ',' or {closing!r} in rule text, got {lexemes[pos]!r}")


def parse_rule_text(text: str) -> list[list[list[int]]]:
    """Parse a nested list of rules: element -> direction -> allowed element indices.

    Accepts brackets or parentheses, trailing commas and ``//`` or ``/* */`` comments.
    """
    lexemes = list(_lexemes(text))
    value, pos = _parse_value(lexemes, 0)
    if pos != len(lexemes):
        raise ValueError("trailing content after rule list")
    if not isinstance(value, list):
        raise ValueError("rule text must hold a list")
    for element in value:
        if not isinstance(element, list) or not all(isinstance(d, list) for d in element):
            raise ValueError("each element rule must be a list of direction lists")
        for direction in element:
            if not all(isinstance(i, int) for i in direction):
                raise ValueError("direction rules must hold element indices")
    return value


@dataclass(frozen=True)
class WfcRules:
    """Per-element, per-direction bitmasks of the elements allowed as neighbours."""

    masks: tuple[tuple[int, ...], ...]

    @classmethod
    def from_lists(cls, rules: Sequence[Sequence[Sequence[int]]], ty: TilemapType) -> "WfcRules":
        """Build rules from lists of allowed neighbour indices and check them."""
        if len(rules) > MAX_ELEMENTS:
            raise ValueError(f"only {MAX_ELEMENTS} elements are supported, got {len(rules)}")
        dirs = ty.direction_count
        masks = []
        for tex_idx, element in enumerate(rules):
            if len(element) < dirs:
                raise ValueError(
                    f"element {tex_idx} has rules for {len(element)} directions, needs {dirs}"
                )
            element_masks = []
            for allowed in element[:dirs]:
                mask = 0
                for idx in allowed:
                    if not 0 <= idx < MAX_ELEMENTS:
                        raise ValueError(f"element index out of range in rules: {idx}")
                    mask |= 1 << idx
                element_masks.append(mask)
            masks.append(tuple(element_masks))
        result = cls(tuple(masks))
        result.check_rules(ty)
        return result

    @classmethod
    def from_file(cls, path: Union[str, PathLike], ty: TilemapType) -> "WfcRules":
        """Read and check rules from a text file."""
        return cls.from_lists(parse_rule_text(Path(path).read_text(encoding="utf-8")), ty)

    def check_rules(self, ty: TilemapType) -> None:
        """Raise WfcRuleConflict if any adjacency is allowed one way but not back."""
        total_dirs = ty.direction_count
        names = ty.direction_names
        for this_idx, element in enumerate(self.masks):
            for direction, rule in enumerate(element[:total_dirs]):
                opposite = total_dirs - direction - 1
                for other_idx in range(MAX_ELEMENTS):
                    if not rule & (1 << other_idx):
                        continue
                    if other_idx >= len(self.masks):
                        raise ValueError(
                            f"{this_idx}'s {names[direction]} refers to unknown element {other_idx}"
                        )
                    if not self.masks[other_idx][opposite] & (1 << this_idx):
                        raise WfcRuleConflict(
                            f"Conflict in rules! {this_idx}'s {names[direction]} can be "
                            f"{other_idx}, but {other_idx}'s {names[opposite]} cannot be "
                            f"{this_idx}!"
                        )

    def __len__(self) -> int:
        return len(self.masks)

    def __getitem__(self, index: int) -> tuple[int, ...]:
        return self.masks[index]

    def __iter__(self) -> Iterator[tuple[int, ...]]:
        return iter(self.masks)