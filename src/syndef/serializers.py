"""JSON, XML and Graphviz renderings of a ``SynthDef``."""

import json
import xml.etree.ElementTree as ElementTree
from typing import Any

from .enums import operator_name, rate_token
from .graph import Constant, Input, SynthDef, UGen

FORMATS = ("tree", "json", "dot", "xml")


def _input_to_dict(input_: Input) -> dict[str, int]:
    if isinstance(input_, Constant):
        return {"ugenIndex": -1, "outputIndex": input_.index}
    return {"ugenIndex": input_.ugen_index, "outputIndex": input_.output_index}


def _ugen_to_dict(ugen: UGen) -> dict[str, Any]:
    return {
        "name": ugen.name,
        "rate": ugen.rate,
        "specialIndex": ugen.special_index,
        "inputs": [_input_to_dict(input_) for input_ in ugen.inputs],
        "outputs": list(ugen.outputs),
    }


def to_dict(synthdef: SynthDef) -> dict[str, Any]:
    return {
        "name": synthdef.name,
        "constants": list(synthdef.constants),
        "initialParamValues": list(synthdef.parameters),
        "paramNames": [
            {"name": name, "index": index}
            for name, index in synthdef.parameter_names.items()
        ],
        "ugens": [_ugen_to_dict(ugen) for ugen in synthdef.ugens],
        "variants": [
            {"name": name, "values": list(values)}
            for name, values in synthdef.variants.items()
        ],
    }


def to_json(synthdef: SynthDef, indent: int | None = 2) -> str:
    return json.dumps(to_dict(synthdef), indent=indent)


def to_xml(synthdef: SynthDef) -> str:
    root = ElementTree.Element("synthdef", name=synthdef.name or "")
    constants = ElementTree.SubElement(root, "constants")
    for value in synthdef.constants:
        ElementTree.SubElement(constants, "constant").text = repr(value)
    parameters = ElementTree.SubElement(root, "parameters")
    for value in synthdef.parameters:
        ElementTree.SubElement(parameters, "parameter").text = repr(value)
    names = ElementTree.SubElement(root, "paramNames")
    for name, index in synthdef.parameter_names.items():
        ElementTree.SubElement(names, "paramName", name=name, index=str(index))
    ugens = ElementTree.SubElement(root, "ugens")
    for ugen in synthdef.ugens:
        element = ElementTree.SubElement(
            ugens,
            "ugen",
            name=ugen.name,
            rate=str(ugen.rate),
            specialIndex=str(ugen.special_index),
        )
        inputs = ElementTree.SubElement(element, "inputs")
        for input_ in ugen.inputs:
            ElementTree.SubElement(
                inputs,
                "input",
                {key: str(value) for key, value in _input_to_dict(input_).items()},
            )
        outputs = ElementTree.SubElement(element, "outputs")
        for rate in ugen.outputs:
            ElementTree.SubElement(outputs, "output", rate=str(rate))
    variants = ElementTree.SubElement(root, "variants")
    for name, values in synthdef.variants.items():
        variant = ElementTree.SubElement(variants, "variant", name=name)
        for value in values:
            ElementTree.SubElement(variant, "value").text = repr(value)
    ElementTree.indent(root)
    return ElementTree.tostring(root, encoding="unicode")


def _dot_label(ugen: UGen) -> str:
    label = f"{ugen.name}.{rate_token(ugen.rate)}"
    if (operator := operator_name(ugen.name, ugen.special_index)) is not None:
        label += f" {operator}"
    return label


def to_dot(synthdef: SynthDef) -> str:
    """Render a Graphviz digraph; edges run from producer to consumer."""
    lines = [f"digraph {json.dumps(synthdef.name or 'synthdef')} {{"]
    for index, ugen in enumerate(synthdef.ugens):
        lines.append(f"    ugen_{index} [label={json.dumps(_dot_label(ugen))}];")
    for index, ugen in enumerate(synthdef.ugens):
        for position, input_ in enumerate(ugen.inputs):
            if isinstance(input_, Constant):
                source = f"ugen_{index}_input_{position}"
                value = synthdef.constants[input_.index]
                lines.append(f'    {source} [label="{value:g}", shape=plaintext];')
            else:
                source = f"ugen_{input_.ugen_index}"
            lines.append(f'    {source} -> ugen_{index} [label="{position}"];')
    lines.append("}")
    return "\n".join(lines)
