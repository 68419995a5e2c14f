"""Box-drawing tree rendering of a UGen graph."""

from collections.abc import Iterator

from .graph import Constant, CyclicGraphError, SynthDef

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


def render(synthdef: SynthDef, root: int | None = None) -> Iterator[str]:
    """Lazily yield the lines of the tree below ``root``.

    ``root`` defaults to ``synthdef.root()``. Shared sub-graphs are rendered
    once per path that reaches them.

    Raises:
        CyclicGraphError: if a ugen is reached again on its own path.
    """
    if root is None:
        root = synthdef.root()
    ugens, constants = synthdef.ugens, synthdef.constants
    visiting = {root}
    yield f"{ugens[root].name}({root})"
    # One entry per ugen on the current path, each resuming its own inputs.
    stack = [(root, "", enumerate(ugens[root].inputs))]
    while stack:
        ugen_index, prefix, inputs = stack[-1]
        for i, input_ in inputs:
            last = i == len(ugens[ugen_index].inputs) - 1
            connector = prefix + (LAST_BRANCH if last else BRANCH)
            if isinstance(input_, Constant):
                yield f"{connector}{constants[input_.index]:f}"
                continue
            child = input_.ugen_index
            if child in visiting:
                raise CyclicGraphError(f"cycle through ugen {child}")
            visiting.add(child)
            yield f"{connector}{ugens[child].name}({child})"
            child_prefix = prefix + (SPACE if last else PIPE)
            stack.append((child, child_prefix, enumerate(ugens[child].inputs)))
            break
        else:
            stack.pop()
            visiting.discard(ugen_index)


def format_tree(synthdef: SynthDef, root: int | None = None) -> str:
    return "\n".join(render(synthdef, root))
