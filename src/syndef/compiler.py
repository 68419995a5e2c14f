"""SCgf binary compiler for syndef graphs."""

from __future__ import annotations

import struct
from collections.abc import Callable
from typing import TYPE_CHECKING

from .graph import Constant, SynthDefError

if TYPE_CHECKING:
    from .graph import Input, SynthDef, UGen

SUPPORTED_VERSIONS = (1, 2)


class CompilerError(SynthDefError):
    """A graph holds a count or index too large for the target SCgf version."""

    pass


def _compile_constants(synthdef: SynthDef, encode_int: Callable[[int], bytes]) -> bytes:
    return b"".join(
        [
            encode_int(len(synthdef.constants)),
            *(_encode_float(constant) for constant in synthdef.constants),
        ]
    )


def _compile_parameters(synthdef: SynthDef, encode_int: Callable[[int], bytes]) -> bytes:
    result = [encode_int(len(synthdef.parameters))]
    for value in synthdef.parameters:
        result.append(_encode_float(value))
    parameter_names = synthdef.parameter_names
    result.append(encode_int(len(parameter_names)))
    for name, index in parameter_names.items():
        result.append(_encode_string(name) + encode_int(index))
    return b"".join(result)


def _compile_synthdef(synthdef: SynthDef, encode_int: Callable[[int], bytes]) -> bytes:
    return b"".join(
        [
            _encode_string(synthdef.name or ""),
            _compile_ugen_graph(synthdef, encode_int),
        ]
    )


def _compile_ugen(ugen: UGen, encode_int: Callable[[int], bytes]) -> bytes:
    return b"".join(
        [
            _encode_string(ugen.name),
            _encode_unsigned_int_8bit(ugen.rate),
            encode_int(len(ugen.inputs)),
            encode_int(len(ugen.outputs)),
            _encode_unsigned_int_16bit(ugen.special_index),
            *(_compile_ugen_input_spec(input_, encode_int) for input_ in ugen.inputs),
            *(_encode_unsigned_int_8bit(rate) for rate in ugen.outputs),
        ]
    )


def _compile_ugens(synthdef: SynthDef, encode_int: Callable[[int], bytes]) -> bytes:
    return b"".join(
        [
            encode_int(len(synthdef.ugens)),
            *(_compile_ugen(ugen, encode_int) for ugen in synthdef.ugens),
        ]
    )


def _compile_ugen_graph(synthdef: SynthDef, encode_int: Callable[[int], bytes]) -> bytes:
    return b"".join(
        [
            _compile_constants(synthdef, encode_int),
            _compile_parameters(synthdef, encode_int),
            _compile_ugens(synthdef, encode_int),
            _compile_variants(synthdef),
        ]
    )


def _compile_ugen_input_spec(input_: Input, encode_int: Callable[[int], bytes]) -> bytes:
    if isinstance(input_, Constant):
        return encode_int(-1) + encode_int(input_.index)
    return encode_int(input_.ugen_index) + encode_int(input_.output_index)


def _compile_variants(synthdef: SynthDef) -> bytes:
    variants = synthdef.variants
    result = [_encode_unsigned_int_16bit(len(variants))]
    for name, values in variants.items():
        result.append(_encode_string(name))
        result.extend(_encode_float(value) for value in values)
    return b"".join(result)


def _encode_string(value: str) -> bytes:
    return struct.pack(">B", len(value)) + value.encode("ascii")


def _encode_float(value: float) -> bytes:
    return struct.pack(">f", value)


def _encode_unsigned_int_8bit(value: int) -> bytes:
    return struct.pack(">B", value)


def _encode_unsigned_int_16bit(value: int) -> bytes:
    return struct.pack(">H", value)


def _encode_unsigned_int_32bit(value: int) -> bytes:
    return struct.pack(">I", value)


def _encode_int_16bit(value: int) -> bytes:
    return struct.pack(">h", value)


def _encode_int_32bit(value: int) -> bytes:
    return struct.pack(">i", value)


def compile_synthdefs(
    synthdef: SynthDef,
    *synthdefs: SynthDef,
    version: int = 2,
) -> bytes:
    """Compile one or more graphs into an SCgf file.

    Version 2 writes counts and indices as 32-bit integers, version 1 as
    16-bit integers.

    Raises:
        CompilerError: if a count or index overflows its field.
    """
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"unsupported SCgf version: {version}")
    encode_int = _encode_int_32bit if version == 2 else _encode_int_16bit
    synthdefs_ = (synthdef,) + synthdefs
    try:
        return b"".join(
            [
                b"SCgf",
                _encode_unsigned_int_32bit(version),
                _encode_unsigned_int_16bit(len(synthdefs_)),
                *(_compile_synthdef(sd, encode_int) for sd in synthdefs_),
            ]
        )
    except struct.error as e:
        raise CompilerError(f"cannot encode as SCgf version {version}: {e}") from e
