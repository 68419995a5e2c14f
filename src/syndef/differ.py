"""
Structural diff of two UGen graphs.

The two graphs are walked in lock-step from their roots. At each pair of nodes
the kinds, input counts and inputs are compared position by position; matching
references are followed, everything else is reported as a ``Difference``.
Matching is positional: permuted but otherwise equivalent siblings are
reported as differences.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import NamedTuple

from .enums import BinaryOperator
from .graph import Constant, CyclicGraphError, Input, SynthDef

logger = logging.getLogger(__name__)

# Operators whose two operands can be swapped without changing the result.
COMMUTATIVE_OPERATORS = frozenset(
    [
        BinaryOperator.ADDITION,
        BinaryOperator.MULTIPLICATION,
        BinaryOperator.EQUAL,
        BinaryOperator.NOT_EQUAL,
        BinaryOperator.MINIMUM,
        BinaryOperator.MAXIMUM,
        BinaryOperator.BITWISE_AND,
        BinaryOperator.BITWISE_OR,
        BinaryOperator.BITWISE_XOR,
        BinaryOperator.LCM,
        BinaryOperator.GCD,
        BinaryOperator.HYPOT,
        BinaryOperator.HYPOTX,
        BinaryOperator.SUM_OF_SQUARES,
        BinaryOperator.SQUARE_OF_SUM,
        BinaryOperator.ABSOLUTE_DIFFERENCE,
    ]
)


class Difference(NamedTuple):
    left: str
    right: str


def _constants_equal(left: float, right: float) -> bool:
    return left == right or (math.isnan(left) and math.isnan(right))


@dataclass
class _Frame:
    """One pair of ugens on the walk's current path."""

    left_index: int
    right_index: int
    # False after a kind or arity mismatch: the inputs are not compared.
    matched: bool = False
    right_inputs: tuple[Input, ...] = ()
    position: int = 0
    differences: list[Difference] = field(default_factory=list)
    # Set once the operands are retried in swapped order.
    swapped: bool = False
    straight: list[Difference] = field(default_factory=list)


class Differ:
    """Compares two synthdefs structurally.

    With ``commutative=True``, a ``BinaryOpUGen`` whose operator is in
    ``COMMUTATIVE_OPERATORS`` also matches when its two operands are swapped.
    """

    def __init__(self, left: SynthDef, right: SynthDef, *, commutative: bool = False) -> None:
        self.left = left
        self.right = right
        self.commutative = commutative

    def _is_commutative(self, left_index: int, right_index: int) -> bool:
        left_ugen = self.left.ugens[left_index]
        right_ugen = self.right.ugens[right_index]
        return (
            self.commutative
            and left_ugen.name == "BinaryOpUGen"
            and len(left_ugen.inputs) == 2
            and left_ugen.special_index == right_ugen.special_index
            and left_ugen.special_index in COMMUTATIVE_OPERATORS
        )

    def _enter(self, left_index: int, right_index: int, visiting: set[tuple[int, int]]) -> _Frame:
        key = (left_index, right_index)
        if key in visiting:
            raise CyclicGraphError(f"cycle through ugen {left_index} and ugen {right_index}")
        visiting.add(key)
        u1, u2 = self.left.ugens[left_index], self.right.ugens[right_index]
        frame = _Frame(left_index, right_index)
        if u1.name != u2.name:
            frame.differences.append(
                Difference(
                    f"ugen {left_index} is a {u1.name}",
                    f"ugen {right_index} is a {u2.name}",
                )
            )
        elif len(u1.inputs) != len(u2.inputs):
            frame.differences.append(
                Difference(
                    f"{u1.name} has {len(u1.inputs)} inputs",
                    f"{u2.name} has {len(u2.inputs)} inputs",
                )
            )
        else:
            frame.matched = True
            frame.right_inputs = u2.inputs
        return frame

    def _advance(self, frame: _Frame) -> tuple[int, int] | None:
        """Compare inputs from ``frame.position`` on.

        Stops at the first pair of references and returns the ugen indices to
        descend into, or None once every input has been compared.
        """
        if not frame.matched:
            return None
        left, right = self.left, self.right
        left_index, right_index = frame.left_index, frame.right_index
        u1, u2 = left.ugens[left_index], right.ugens[right_index]
        while frame.position < len(u1.inputs):
            i = frame.position
            frame.position += 1
            in1, in2 = u1.inputs[i], frame.right_inputs[i]
            if isinstance(in1, Constant) and isinstance(in2, Constant):
                v1, v2 = left.constants[in1.index], right.constants[in2.index]
                if not _constants_equal(v1, v2):
                    frame.differences.append(
                        Difference(
                            f"{u1.name} (ugen {left_index}), input {i} has constant value {v1:f}",
                            f"{u2.name} (ugen {right_index}), input {i} has constant value {v2:f}",
                        )
                    )
            elif isinstance(in1, Constant):
                frame.differences.append(
                    Difference(
                        f"{u1.name}({left_index}), input {i} is constant "
                        f"({left.constants[in1.index]:f})",
                        f"{u2.name}({right_index}), input {i} points to "
                        f"{right.ugens[in2.ugen_index].name}({in2.ugen_index})",
                    )
                )
            elif isinstance(in2, Constant):
                frame.differences.append(
                    Difference(
                        f"{u1.name}({left_index}), input {i} points to "
                        f"{left.ugens[in1.ugen_index].name}({in1.ugen_index})",
                        f"{u2.name}({right_index}), input {i} is constant "
                        f"({right.constants[in2.index]:f})",
                    )
                )
            else:
                return in1.ugen_index, in2.ugen_index
        return None

    def _walk(self, left_root: int, right_root: int) -> list[Difference]:
        # Explicit stack: graphs can be chains thousands of ugens deep.
        visiting: set[tuple[int, int]] = set()
        stack = [self._enter(left_root, right_root, visiting)]
        while True:
            frame = stack[-1]
            child = self._advance(frame)
            if child is not None:
                stack.append(self._enter(*child, visiting))
                continue
            if (
                frame.differences
                and frame.matched
                and not frame.swapped
                and self._is_commutative(frame.left_index, frame.right_index)
            ):
                frame.straight = frame.differences
                frame.differences = []
                frame.position = 0
                frame.swapped = True
                frame.right_inputs = frame.right_inputs[::-1]
                continue
            differences = frame.differences
            if frame.swapped:
                if differences:
                    differences = frame.straight
                else:
                    logger.debug(
                        "ugen %d and ugen %d match with swapped operands",
                        frame.left_index,
                        frame.right_index,
                    )
            stack.pop()
            visiting.discard((frame.left_index, frame.right_index))
            if not stack:
                return differences
            stack[-1].differences.extend(differences)

    def diff(self) -> list[Difference]:
        """Return the structural differences, empty if the graphs match.

        Differing ugen or constant counts are reported as a single difference
        without walking the graphs.

        Raises:
            CyclicGraphError: if the walk revisits a pair of ugens on its path.
        """
        left, right = self.left, self.right
        if (l1 := len(left.ugens)) != (l2 := len(right.ugens)):
            return [Difference(f"{l1} ugens", f"{l2} ugens")]
        if (l1 := len(left.constants)) != (l2 := len(right.constants)):
            return [Difference(f"{l1} constants", f"{l2} constants")]
        left_root, right_root = left.root(), right.root()
        logger.debug("walking from ugen %d and ugen %d", left_root, right_root)
        return self._walk(left_root, right_root)



def diff(left: SynthDef, right: SynthDef, *, commutative: bool = False) -> list[Difference]:
    return Differ(left, right, commutative=commutative).diff()


def format_differences(
    differences: Iterable[Difference],
    left_label: str,
    right_label: str,
    width: int = 50,
) -> str:
    """Render differences as two columns under a header row naming the sources.

    The left column is ``width`` characters wide, widened to keep two spaces
    after its longest entry.
    """
    if width < 1:
        raise ValueError(f"column width must be positive, got {width}")
    rows = [(left_label, right_label), *differences]
    width = max(width, *(len(left) + 2 for left, _ in rows))
    return "\n".join(f"{left:<{width}}{right}" for left, right in rows)
