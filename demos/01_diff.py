"""
01_diff.py -- Structural diff of two sine synthdefs.

Builds Out(0, SinOsc(freq) * amp) twice with different frequencies, writes
both as SCgf files, reads them back and prints the diff table the
``syndef diff`` command prints.
"""

import tempfile
from pathlib import Path

from syndef import (
    Constant,
    Reference,
    SynthDef,
    UGen,
    diff,
    format_differences,
    load_synthdef,
)


def sine(frequency):
    return SynthDef(
        [
            UGen("SinOsc", rate=2, inputs=[Constant(1), Constant(0)], outputs=[2]),
            UGen(
                "BinaryOpUGen",
                rate=2,
                inputs=[Reference(0), Constant(2)],
                outputs=[2],
                special_index=2,
            ),
            UGen("Out", rate=2, inputs=[Constant(0), Reference(1)]),
        ],
        constants=[0.0, frequency, 0.3],
        name="sine",
    )


def main():
    with tempfile.TemporaryDirectory() as directory:
        left = Path(directory) / "sine_440.scsyndef"
        right = Path(directory) / "sine_441.scsyndef"
        left.write_bytes(sine(440.0).compile())
        right.write_bytes(sine(441.0).compile())
        differences = diff(load_synthdef(left), load_synthdef(right))
        print(format_differences(differences, left.name, right.name))


if __name__ == "__main__":
    main()
