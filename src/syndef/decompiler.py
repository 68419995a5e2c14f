"""SCgf binary decompiler: reads synthdef files into ``SynthDef`` graphs."""

import logging
import os
import struct

from .graph import Constant, Input, Reference, SynthDef, SynthDefError, UGen

logger = logging.getLogger(__name__)

SCGF_MAGIC = b"SCgf"


class DecompilerError(SynthDefError):
    pass


class _Reader:
    """Cursor over SCgf bytes. Counts and indices are 16-bit in version 1."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0
        self.version = 2

    def _unpack(self, format_: str) -> int | float:
        size = struct.calcsize(format_)
        if self.offset + size > len(self.data):
            raise DecompilerError(
                f"unexpected end of data at byte {self.offset} "
                f"(needed {size}, {len(self.data) - self.offset} left)"
            )
        (value,) = struct.unpack_from(format_, self.data, self.offset)
        self.offset += size
        return value

    def read_float(self) -> float:
        return float(self._unpack(">f"))

    def read_int(self) -> int:
        return int(self._unpack(">i" if self.version == 2 else ">h"))

    def read_int_8bit(self) -> int:
        return int(self._unpack(">B"))

    def read_int_16bit(self) -> int:
        return int(self._unpack(">H"))

    def read_int_32bit(self) -> int:
        return int(self._unpack(">I"))

    def read_string(self) -> str:
        length = self.read_int_8bit()
        if self.offset + length > len(self.data):
            raise DecompilerError(f"unexpected end of data in string at byte {self.offset}")
        raw = self.data[self.offset : self.offset + length]
        self.offset += length
        try:
            return raw.decode("ascii")
        except UnicodeDecodeError as e:
            raise DecompilerError(f"non-ASCII name {raw!r}") from e

    def read_count(self, what: str) -> int:
        count = self.read_int()
        if count < 0:
            raise DecompilerError(f"negative {what} count: {count}")
        return count

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset


def _decompile_input(reader: _Reader) -> Input:
    ugen_index = reader.read_int()
    index = reader.read_int()
    if ugen_index == -1:
        return Constant(index)
    return Reference(ugen_index, index)


def _decompile_ugen(reader: _Reader) -> UGen:
    name = reader.read_string()
    rate = reader.read_int_8bit()
    input_count = reader.read_count("input")
    output_count = reader.read_count("output")
    special_index = reader.read_int_16bit()
    inputs = tuple(_decompile_input(reader) for _ in range(input_count))
    outputs = tuple(reader.read_int_8bit() for _ in range(output_count))
    return UGen(
        name=name,
        rate=rate,
        inputs=inputs,
        outputs=outputs,
        special_index=special_index,
    )


def _decompile_synthdef(reader: _Reader) -> SynthDef:
    name = reader.read_string()
    constants = [reader.read_float() for _ in range(reader.read_count("constant"))]
    parameters = [reader.read_float() for _ in range(reader.read_count("parameter"))]
    parameter_names: dict[str, int] = {}
    for _ in range(reader.read_count("parameter name")):
        key = reader.read_string()
        parameter_names[key] = reader.read_int()
    ugens = [_decompile_ugen(reader) for _ in range(reader.read_count("ugen"))]
    variants: dict[str, list[float]] = {}
    for _ in range(reader.read_int_16bit()):
        key = reader.read_string()
        variants[key] = [reader.read_float() for _ in parameters]
    logger.debug(
        "decompiled %r: %d ugens, %d constants, %d parameters",
        name,
        len(ugens),
        len(constants),
        len(parameters),
    )
    return SynthDef(
        ugens,
        constants=constants,
        name=name,
        parameters=parameters,
        parameter_names=parameter_names,
        variants=variants,
    )


def decompile_synthdefs(data: bytes) -> list[SynthDef]:
    """Decompile every synthdef in an SCgf file.

    Raises:
        DecompilerError: on a bad header, truncated or trailing data.
        MalformedGraphError: if a graph refers outside its ugens or constants.
    """
    reader = _Reader(bytes(data))
    if reader.data[:4] != SCGF_MAGIC:
        raise DecompilerError(f"not an SCgf file (magic {reader.data[:4]!r})")
    reader.offset = 4
    version = reader.read_int_32bit()
    if version not in (1, 2):
        raise DecompilerError(f"unsupported SCgf version: {version}")
    reader.version = version
    count = reader.read_int_16bit()
    synthdefs = [_decompile_synthdef(reader) for _ in range(count)]
    if reader.remaining:
        raise DecompilerError(f"{reader.remaining} trailing bytes after {count} synthdefs")
    return synthdefs


def decompile_synthdef(data: bytes, name: str | None = None) -> SynthDef:
    """Decompile one synthdef from an SCgf file.

    Without ``name`` the first definition is returned.
    """
    synthdefs = decompile_synthdefs(data)
    if not synthdefs:
        raise DecompilerError("SCgf file contains no synthdefs")
    if name is None:
        if len(synthdefs) > 1:
            logger.warning(
                "SCgf file holds %d synthdefs, using the first (%r)",
                len(synthdefs),
                synthdefs[0].name,
            )
        return synthdefs[0]
    for synthdef in synthdefs:
        if synthdef.name == name:
            return synthdef
    names = ", ".join(repr(sd.name) for sd in synthdefs)
    raise DecompilerError(f"no synthdef named {name!r} (found {names})")


def load_synthdef(path: str | os.PathLike[str], name: str | None = None) -> SynthDef:
    with open(path, "rb") as file_pointer:
        data = file_pointer.read()
    logger.info("loaded %s (%d bytes)", os.fspath(path), len(data))
    return decompile_synthdef(data, name=name)
