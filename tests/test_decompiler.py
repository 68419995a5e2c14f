"""Tests for SCgf compilation and decompilation."""

import logging
import struct

import pytest

from syndef.compiler import CompilerError, compile_synthdefs
from syndef.decompiler import (
    DecompilerError,
    decompile_synthdef,
    decompile_synthdefs,
    load_synthdef,
)
from syndef.graph import (
    Constant,
    MalformedGraphError,
    Reference,
    SynthDef,
    SynthDefError,
    UGen,
)


def sine_synthdef(name="sine", frequency=440.0):
    """Control -> SinOsc -> BinaryOpUGen(*) -> Out, with one variant."""
    return SynthDef(
        [
            UGen("Control", rate=1, outputs=(1, 1)),
            UGen(
                "SinOsc",
                rate=2,
                inputs=(Reference(0, 0), Constant(0)),
                outputs=(2,),
            ),
            UGen(
                "BinaryOpUGen",
                rate=2,
                inputs=(Reference(1), Reference(0, 1)),
                outputs=(2,),
                special_index=2,
            ),
            UGen("Out", rate=2, inputs=(Constant(0), Reference(2))),
        ],
        constants=[0.0],
        name=name,
        parameters=[frequency, 0.5],
        parameter_names={"frequency": 0, "amplitude": 1},
        variants={"low": [110.0, 0.25]},
    )


def scgf_v2(ugen_index, output_index):
    """A hand-built v2 file: one SinOsc whose only input is given raw."""
    return b"".join(
        [
            b"SCgf",
            struct.pack(">I", 2),
            struct.pack(">H", 1),
            struct.pack(">B", 4) + b"test",
            struct.pack(">i", 1),
            struct.pack(">f", 440.0),
            struct.pack(">i", 0),
            struct.pack(">i", 0),
            struct.pack(">i", 1),
            struct.pack(">B", 6) + b"SinOsc",
            struct.pack(">B", 2),
            struct.pack(">i", 1),
            struct.pack(">i", 1),
            struct.pack(">H", 0),
            struct.pack(">ii", ugen_index, output_index),
            struct.pack(">B", 2),
            struct.pack(">H", 0),
        ]
    )


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


class TestCompilation:
    def test_scgf_header(self):
        """Compiled output starts with SCgf magic, version 2, synthdef count 1."""
        data = sine_synthdef().compile()
        assert data[:4] == b"SCgf"
        assert struct.unpack(">I", data[4:8])[0] == 2
        assert struct.unpack(">H", data[8:10])[0] == 1

    def test_synthdef_name_encoded(self):
        data = sine_synthdef(name="my_synth").compile()
        name_len = data[10]
        assert data[11 : 11 + name_len].decode("ascii") == "my_synth"

    def test_constants_follow_name(self):
        data = sine_synthdef(name="abc").compile()
        # 10-byte header, 4-byte name
        assert struct.unpack(">i", data[14:18])[0] == 1
        assert struct.unpack(">f", data[18:22])[0] == 0.0

    def test_constant_input_uses_minus_one(self):
        """Constant inputs are written with a ugen index of -1."""
        data = scgf_v2(-1, 0)
        synthdef = decompile_synthdef(data)
        assert synthdef.compile() == data

    def test_version_1_uses_16bit_counts(self):
        data = sine_synthdef(name="abc").compile(version=1)
        assert struct.unpack(">I", data[4:8])[0] == 1
        assert struct.unpack(">h", data[14:16])[0] == 1
        assert len(data) < len(sine_synthdef(name="abc").compile(version=2))

    def test_unsupported_version(self):
        with pytest.raises(ValueError, match="unsupported SCgf version"):
            compile_synthdefs(sine_synthdef(), version=3)

    def test_multiple_synthdefs(self):
        data = compile_synthdefs(sine_synthdef(name="a"), sine_synthdef(name="b"))
        assert struct.unpack(">H", data[8:10])[0] == 2

    def test_version_1_overflow(self):
        """Counts past 32767 only fit the 32-bit fields of version 2."""
        synthdef = SynthDef(
            [UGen("DC", rate=2, inputs=(Constant(39999),), outputs=(2,))],
            constants=[0.0] * 40000,
            name="dc",
        )
        assert decompile_synthdef(synthdef.compile(version=2)) == synthdef
        with pytest.raises(CompilerError, match="SCgf version 1"):
            synthdef.compile(version=1)

    def test_errors_share_base_class(self):
        assert issubclass(CompilerError, SynthDefError)


# ---------------------------------------------------------------------------
# Decompilation
# ---------------------------------------------------------------------------


class TestDecompilation:
    @pytest.mark.parametrize("version", [1, 2])
    def test_round_trip(self, version):
        """Decompiling compiled bytes yields an equal graph."""
        synthdef = sine_synthdef()
        assert decompile_synthdef(synthdef.compile(version=version)) == synthdef

    def test_decoded_inputs_are_tagged(self):
        synthdef = decompile_synthdef(sine_synthdef().compile())
        assert synthdef.ugens[1].inputs == (Reference(0, 0), Constant(0))
        assert synthdef.ugens[2].special_index == 2
        assert synthdef.ugens[0].outputs == (1, 1)
        assert synthdef.parameter_names == {"frequency": 0, "amplitude": 1}
        assert synthdef.variants == {"low": (110.0, 0.25)}

    def test_float32_precision(self):
        """Values are stored as 32-bit floats."""
        synthdef = decompile_synthdef(sine_synthdef(frequency=0.1).compile())
        assert synthdef.parameters[0] == struct.unpack(">f", struct.pack(">f", 0.1))[0]

    def test_all_synthdefs(self):
        data = compile_synthdefs(sine_synthdef(name="a"), sine_synthdef(name="b"))
        assert [sd.name for sd in decompile_synthdefs(data)] == ["a", "b"]

    def test_select_by_name(self):
        data = compile_synthdefs(sine_synthdef(name="a"), sine_synthdef(name="b", frequency=220.0))
        synthdef = decompile_synthdef(data, name="b")
        assert synthdef.name == "b"
        assert synthdef.parameters[0] == 220.0

    def test_first_synthdef_by_default(self, caplog):
        """Without a name the first definition is used, with a warning."""
        data = compile_synthdefs(sine_synthdef(name="a"), sine_synthdef(name="b"))
        with caplog.at_level(logging.WARNING, logger="syndef.decompiler"):
            synthdef = decompile_synthdef(data)
        assert synthdef.name == "a"
        assert "holds 2 synthdefs" in caplog.text

    def test_unknown_name(self):
        with pytest.raises(DecompilerError, match="no synthdef named 'c'"):
            decompile_synthdef(sine_synthdef(name="a").compile(), name="c")

    def test_load_synthdef(self, tmp_path):
        path = tmp_path / "sine.scsyndef"
        path.write_bytes(sine_synthdef().compile())
        assert load_synthdef(path) == sine_synthdef()
        assert load_synthdef(str(path), name="sine").name == "sine"


class TestDecompilerErrors:
    def test_bad_magic(self):
        with pytest.raises(DecompilerError, match="not an SCgf file"):
            decompile_synthdefs(b"RIFF\x00\x00\x00\x02\x00\x01")

    def test_empty_data(self):
        with pytest.raises(DecompilerError, match="not an SCgf file"):
            decompile_synthdefs(b"")

    def test_unsupported_version(self):
        data = b"SCgf" + struct.pack(">I", 3) + struct.pack(">H", 0)
        with pytest.raises(DecompilerError, match="unsupported SCgf version: 3"):
            decompile_synthdefs(data)

    def test_no_synthdefs(self):
        data = b"SCgf" + struct.pack(">I", 2) + struct.pack(">H", 0)
        assert decompile_synthdefs(data) == []
        with pytest.raises(DecompilerError, match="no synthdefs"):
            decompile_synthdef(data)

    def test_truncated(self):
        data = sine_synthdef().compile()
        with pytest.raises(DecompilerError, match="unexpected end of data"):
            decompile_synthdefs(data[:-1])

    def test_truncated_name(self):
        data = b"SCgf" + struct.pack(">I", 2) + struct.pack(">H", 1) + b"\x10abc"
        with pytest.raises(DecompilerError, match="unexpected end of data"):
            decompile_synthdefs(data)

    def test_trailing_bytes(self):
        data = sine_synthdef().compile() + b"\x00\x00"
        with pytest.raises(DecompilerError, match="2 trailing bytes"):
            decompile_synthdefs(data)

    def test_negative_count(self):
        data = b"SCgf" + struct.pack(">I", 2) + struct.pack(">H", 1)
        data += struct.pack(">B", 1) + b"x" + struct.pack(">i", -4)
        with pytest.raises(DecompilerError, match="negative constant count"):
            decompile_synthdefs(data)

    def test_non_ascii_name(self):
        data = b"SCgf" + struct.pack(">I", 2) + struct.pack(">H", 1) + b"\x02\xc3\xa9"
        with pytest.raises(DecompilerError, match="non-ASCII"):
            decompile_synthdefs(data)

    def test_dangling_ugen_index(self):
        """Out-of-range indices fail at load time, not during a diff."""
        with pytest.raises(MalformedGraphError, match="refers to ugen 3"):
            decompile_synthdefs(scgf_v2(3, 0))

    def test_dangling_constant_index(self):
        with pytest.raises(MalformedGraphError, match="refers to constant 7"):
            decompile_synthdefs(scgf_v2(-1, 7))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_synthdef(tmp_path / "missing.scsyndef")
