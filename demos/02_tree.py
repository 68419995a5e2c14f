"""
02_tree.py -- Tree and Graphviz renderings of a small FM synthdef.

Modulator SinOsc -> MulAdd-style BinaryOpUGens -> carrier SinOsc -> Out.
"""

from syndef import Constant, Reference, SynthDef, UGen, format_tree, to_dot


def main():
    synthdef = SynthDef(
        [
            UGen("SinOsc", rate=2, inputs=[Constant(0), Constant(1)], outputs=[2]),
            UGen(
                "BinaryOpUGen",
                rate=2,
                inputs=[Reference(0), Constant(2)],
                outputs=[2],
                special_index=2,
            ),
            UGen(
                "BinaryOpUGen",
                rate=2,
                inputs=[Reference(1), Constant(3)],
                outputs=[2],
                special_index=0,
            ),
            UGen("SinOsc", rate=2, inputs=[Reference(2), Constant(1)], outputs=[2]),
            UGen("Out", rate=2, inputs=[Constant(1), Reference(3)]),
        ],
        constants=[5.0, 0.0, 100.0, 440.0],
        name="fm",
    )
    print(format_tree(synthdef))
    print()
    print(to_dot(synthdef))


if __name__ == "__main__":
    main()
