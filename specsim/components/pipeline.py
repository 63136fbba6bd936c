"""
Pipeline Stage Mapper

Maps a short instruction sequence onto four fixed stages, one
instruction per stage, for display.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Union

from ..errors import ShapeError

STAGES = ('fetch', 'decode', 'execute', 'retire')


@dataclass(frozen=True)
class Instruction:
    """An instruction token."""
    label: str
    speculative: bool

    def to_dict(self) -> Dict:
        return {'label': self.label, 'speculative': self.speculative}


@dataclass
class StageView:
    """Instructions occupying one pipeline stage."""
    stage: str
    instructions: List[Instruction] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'stage': self.stage,
            'instructions': [i.to_dict() for i in self.instructions],
        }


def _coerce_instruction(entry, idx: int) -> Instruction:
    if isinstance(entry, Instruction):
        label, speculative = entry.label, entry.speculative
    elif isinstance(entry, Mapping):
        label, speculative = entry.get('label'), entry.get('speculative')
    else:
        raise ShapeError(
            f"Pipeline instruction at index {idx} must be a mapping with a label "
            f"and speculative flag, got {type(entry).__name__}"
        )

    if not isinstance(label, str):
        raise ShapeError(f"Pipeline instruction at index {idx} is missing a string label")
    if not isinstance(speculative, bool):
        raise ShapeError(
            f"Pipeline instruction at index {idx} is missing a boolean speculative flag"
        )
    return Instruction(label=label, speculative=speculative)


class Pipeline:
    """Minimal four-stage pipeline view."""

    def __init__(self):
        self.stages = STAGES

    def simulate(self, instructions: Sequence[Union[Instruction, Mapping]],
                 mispredict: bool = False) -> List[StageView]:
        """
        Map instructions to stages by position.

        An instruction is shown as speculative only when it was flagged
        speculative and a misprediction actually occurred. Instructions
        beyond the last stage are not rendered.

        Args:
            instructions: Instruction tokens (Instruction or mapping)
            mispredict: Whether the speculative path should be highlighted

        Returns:
            One StageView per stage
        """
        if not isinstance(instructions, (list, tuple)):
            raise ShapeError(
                f"Pipeline.simulate expects a list of instructions, "
                f"got {type(instructions).__name__}"
            )

        # Validate everything before producing any stage
        tokens = [_coerce_instruction(entry, idx)
                  for idx, entry in enumerate(instructions)]

        views = []
        for index, stage in enumerate(self.stages):
            staged = []
            if index < len(tokens):
                token = tokens[index]
                staged.append(Instruction(
                    label=token.label,
                    speculative=bool(mispredict) and token.speculative,
                ))
            views.append(StageView(stage=stage, instructions=staged))
        return views


def build_speculative_sequence(branch_taken: bool) -> List[Instruction]:
    """
    Four-instruction sequence for a branch and the path behind it.

    The middle two instructions are speculative only on the not-taken
    (wrong-path) side.
    """
    wrong_path = not branch_taken
    return [
        Instruction('branch', False),
        Instruction('target load' if branch_taken else 'fallthrough', wrong_path),
        Instruction('dependent read', wrong_path),
        Instruction('retire', False),
    ]
