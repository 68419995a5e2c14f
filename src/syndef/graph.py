"""
In-memory UGen graph model for decompiled synthdefs.

A ``SynthDef`` is an ordered sequence of ``UGen`` nodes plus a shared constant
pool. Each UGen input is either a ``Constant`` (an index into the pool) or a
``Reference`` (an output slot of another UGen). Graphs are immutable once built.
"""

from collections.abc import Mapping, Sequence as SequenceABC
from dataclasses import dataclass
from typing import NamedTuple, Union


class SynthDefError(Exception):
    pass


class MalformedGraphError(SynthDefError):
    """A UGen graph holds an index that points outside its ugens or constants."""

    pass


class CyclicGraphError(SynthDefError):
    """A traversal reached a UGen that is already on the current path."""

    pass


class Constant(NamedTuple):
    index: int

    def __repr__(self) -> str:
        return f"<Constant({self.index})>"


class Reference(NamedTuple):
    ugen_index: int
    output_index: int = 0

    def __repr__(self) -> str:
        return f"<Reference({self.ugen_index}, {self.output_index})>"


Input = Union[Constant, Reference]


def _check_name(what: str, name: str) -> None:
    # SCgf names are length-prefixed by a single byte.
    if not name.isascii() or len(name) > 255:
        raise MalformedGraphError(
            f"{what} name {name!r} is not ASCII of at most 255 characters"
        )


def _check_range(what: str, value: int, limit: int) -> None:
    if not 0 <= value < limit:
        raise MalformedGraphError(f"{what} {value} is outside 0..{limit - 1}")


@dataclass(frozen=True)
class UGen:
    """One node of a UGen graph.

    Two UGens are the same kind iff their names are equal. ``outputs`` holds
    one calculation rate per output channel.
    """

    name: str
    rate: int = 0
    inputs: tuple[Input, ...] = ()
    outputs: tuple[int, ...] = ()
    special_index: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))

    def __repr__(self) -> str:
        return f"<{self.name}({len(self.inputs)} inputs, {len(self.outputs)} outputs)>"


class SynthDef:
    """A decompiled synthdef: named UGen graph plus its constant pool.

    ``parameters`` holds the initial control values, ``parameter_names`` maps
    each control name to its offset in ``parameters`` and ``variants`` maps
    each variant name to a full set of control values.

    Raises:
        MalformedGraphError: if any input, parameter name or variant is
            inconsistent with the ugens, constants or parameters, or if a
            name, rate or special index does not fit its SCgf field.
    """

    def __init__(
        self,
        ugens: SequenceABC[UGen],
        constants: SequenceABC[float] = (),
        name: str | None = None,
        parameters: SequenceABC[float] = (),
        parameter_names: Mapping[str, int] | None = None,
        variants: Mapping[str, SequenceABC[float]] | None = None,
    ) -> None:
        if not ugens:
            raise MalformedGraphError("No UGens provided")
        self._ugens = tuple(ugens)
        self._constants = tuple(float(x) for x in constants)
        self._name = name
        self._parameters = tuple(float(x) for x in parameters)
        self._parameter_names = dict(parameter_names or {})
        self._variants = {
            key: tuple(float(x) for x in values)
            for key, values in (variants or {}).items()
        }
        self.validate()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self), self._name, self._ugens, self._constants))

    def __repr__(self) -> str:
        return f"<SynthDef: {self._name}>"

    def _key(self) -> tuple[object, ...]:
        return (
            self._name,
            self._ugens,
            self._constants,
            self._parameters,
            self._parameter_names,
            self._variants,
        )

    def compile(self, version: int = 2) -> bytes:
        from .compiler import compile_synthdefs

        return compile_synthdefs(self, version=version)

    def root(self) -> int:
        """Return the index of the first UGen that no input references.

        Falls back to 0 when every UGen is referenced by some input.
        """
        parents = [0] * len(self._ugens)
        for ugen in self._ugens:
            for input_ in ugen.inputs:
                if isinstance(input_, Reference):
                    parents[input_.ugen_index] += 1
        for index, count in enumerate(parents):
            if count == 0:
                return index
        return 0

    def validate(self) -> None:
        if self._name is not None:
            _check_name("synthdef", self._name)
        for index, ugen in enumerate(self._ugens):
            _check_name(f"ugen {index}", ugen.name)
            _check_range(f"{ugen.name} (ugen {index}) rate", ugen.rate, 256)
            _check_range(
                f"{ugen.name} (ugen {index}) special index", ugen.special_index, 65536
            )
            for position, rate in enumerate(ugen.outputs):
                _check_range(f"{ugen.name} (ugen {index}), output {position} rate", rate, 256)
            for position, input_ in enumerate(ugen.inputs):
                if isinstance(input_, Constant):
                    if not 0 <= input_.index < len(self._constants):
                        raise MalformedGraphError(
                            f"{ugen.name} (ugen {index}), input {position} refers to "
                            f"constant {input_.index} of {len(self._constants)}"
                        )
                    continue
                if not 0 <= input_.ugen_index < len(self._ugens):
                    raise MalformedGraphError(
                        f"{ugen.name} (ugen {index}), input {position} refers to "
                        f"ugen {input_.ugen_index} of {len(self._ugens)}"
                    )
                source = self._ugens[input_.ugen_index]
                if not 0 <= input_.output_index < len(source.outputs):
                    raise MalformedGraphError(
                        f"{ugen.name} (ugen {index}), input {position} refers to "
                        f"output {input_.output_index} of {source.name} "
                        f"(ugen {input_.ugen_index}), which has "
                        f"{len(source.outputs)} outputs"
                    )
        for key, offset in self._parameter_names.items():
            _check_name("parameter", key)
            if not 0 <= offset < len(self._parameters):
                raise MalformedGraphError(
                    f"parameter {key!r} refers to index {offset} of "
                    f"{len(self._parameters)}"
                )
        for key, values in self._variants.items():
            _check_name("variant", key)
            if len(values) != len(self._parameters):
                raise MalformedGraphError(
                    f"variant {key!r} has {len(values)} values, "
                    f"expected {len(self._parameters)}"
                )

    @property
    def constants(self) -> tuple[float, ...]:
        return self._constants

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def parameter_names(self) -> dict[str, int]:
        return dict(self._parameter_names)

    @property
    def parameters(self) -> tuple[float, ...]:
        return self._parameters

    @property
    def ugens(self) -> tuple[UGen, ...]:
        return self._ugens

    @property
    def variants(self) -> dict[str, tuple[float, ...]]:
        return dict(self._variants)
