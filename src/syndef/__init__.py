"""syndef -- inspect, render and structurally diff SuperCollider synthdefs."""

__version__ = "0.1.0"

from .enums import BinaryOperator, CalculationRate, UnaryOperator
from .graph import (
    Constant,
    CyclicGraphError,
    Input,
    MalformedGraphError,
    Reference,
    SynthDef,
    SynthDefError,
    UGen,
)
from .compiler import CompilerError, compile_synthdefs
from .decompiler import (
    DecompilerError,
    decompile_synthdef,
    decompile_synthdefs,
    load_synthdef,
)
from .differ import COMMUTATIVE_OPERATORS, Difference, Differ, diff, format_differences
from .tree import format_tree, render
from .serializers import to_dot, to_json, to_xml

__all__ = [
    "BinaryOperator",
    "COMMUTATIVE_OPERATORS",
    "CalculationRate",
    "CompilerError",
    "Constant",
    "CyclicGraphError",
    "DecompilerError",
    "Difference",
    "Differ",
    "Input",
    "MalformedGraphError",
    "Reference",
    "SynthDef",
    "SynthDefError",
    "UGen",
    "UnaryOperator",
    "compile_synthdefs",
    "decompile_synthdef",
    "decompile_synthdefs",
    "diff",
    "format_differences",
    "format_tree",
    "load_synthdef",
    "render",
    "to_dot",
    "to_json",
    "to_xml",
]
