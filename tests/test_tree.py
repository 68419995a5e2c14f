"""Tests for box-drawing tree rendering."""

import types

import pytest

from syndef.graph import Constant, CyclicGraphError, Reference, SynthDef, UGen
from syndef.tree import format_tree, render


def ugen(name, *inputs):
    return UGen(name, rate=2, inputs=inputs, outputs=(2,))


class TestRender:
    def test_binary_op_with_constants(self):
        """Two constant inputs; the last uses the terminal connector."""
        synthdef = SynthDef(
            [ugen("BinaryOpUGen", Constant(0), Constant(1))],
            constants=[2.0, 3.0],
        )
        assert list(render(synthdef)) == [
            "BinaryOpUGen(0)",
            "├── 2.000000",
            "└── 3.000000",
        ]

    def test_is_lazy(self):
        synthdef = SynthDef([ugen("SinOsc", Constant(0))], constants=[440.0])
        lines = render(synthdef)
        assert isinstance(lines, types.GeneratorType)
        assert next(lines) == "SinOsc(0)"

    def test_no_inputs(self):
        synthdef = SynthDef([ugen("WhiteNoise")])
        assert list(render(synthdef)) == ["WhiteNoise(0)"]

    def test_last_reference_indents_without_bar(self):
        synthdef = SynthDef(
            [
                ugen("SinOsc", Constant(1), Constant(0)),
                ugen("Out", Constant(0), Reference(0)),
            ],
            constants=[0.0, 440.0],
        )
        assert format_tree(synthdef) == "\n".join(
            [
                "Out(1)",
                "├── 0.000000",
                "└── SinOsc(0)",
                "    ├── 440.000000",
                "    └── 0.000000",
            ]
        )

    def test_inner_reference_indents_with_bar(self):
        synthdef = SynthDef(
            [
                ugen("SinOsc", Constant(0), Constant(1)),
                ugen("BinaryOpUGen", Reference(0), Constant(2)),
            ],
            constants=[440.0, 0.0, 0.5],
        )
        assert list(render(synthdef)) == [
            "BinaryOpUGen(1)",
            "├── SinOsc(0)",
            "│   ├── 440.000000",
            "│   └── 0.000000",
            "└── 0.500000",
        ]

    def test_shared_ugen_rendered_per_path(self):
        synthdef = SynthDef(
            [
                ugen("SinOsc", Constant(0)),
                ugen("Mix", Reference(0), Reference(0)),
            ],
            constants=[440.0],
        )
        assert list(render(synthdef)) == [
            "Mix(1)",
            "├── SinOsc(0)",
            "│   └── 440.000000",
            "└── SinOsc(0)",
            "    └── 440.000000",
        ]

    def test_explicit_root(self):
        synthdef = SynthDef(
            [
                ugen("SinOsc", Constant(0)),
                ugen("Out", Reference(0)),
            ],
            constants=[440.0],
        )
        assert list(render(synthdef, root=0)) == ["SinOsc(0)", "└── 440.000000"]

    def test_cycle_raises(self):
        synthdef = SynthDef(
            [
                ugen("LocalIn", Reference(1)),
                ugen("LocalOut", Reference(0)),
            ]
        )
        with pytest.raises(CyclicGraphError, match="ugen 0"):
            list(render(synthdef))


class TestDeepGraphs:
    def test_long_chain(self):
        """Chains deeper than the interpreter's recursion limit render."""
        length = 5000
        ugens = [ugen("DC", Constant(0))]
        ugens += [ugen("LPF", Reference(i - 1), Constant(1)) for i in range(1, length)]
        synthdef = SynthDef(ugens, constants=[0.0, 1000.0])
        count = 0
        for count, line in enumerate(render(synthdef), 1):
            if count == 2:
                assert line == "├── LPF(4998)"
            elif count == length + 1:
                assert line == "│   " * (length - 1) + "└── 0.000000"
        # one line per ugen plus one per constant input
        assert count == 2 * length
        assert line == "└── 1000.000000"

    def test_long_cycle_raises(self):
        length = 5000
        ugens = [ugen("LPF", Reference(length - 1))]
        ugens += [ugen("LPF", Reference(i - 1)) for i in range(1, length)]
        with pytest.raises(CyclicGraphError, match="cycle through ugen 0"):
            for _ in render(SynthDef(ugens)):
                pass
