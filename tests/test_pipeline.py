import pytest

from specsim.components.pipeline import (
    STAGES,
    Instruction,
    Pipeline,
    build_speculative_sequence,
)
from specsim.errors import ShapeError


def test_rejects_non_list_input():
    with pytest.raises(ShapeError, match="expects a list"):
        Pipeline().simulate('not-an-array', False)


def test_rejects_entry_without_label():
    with pytest.raises(ShapeError, match="label"):
        Pipeline().simulate([{}], False)


def test_rejects_entry_without_speculative_flag():
    with pytest.raises(ShapeError, match="speculative"):
        Pipeline().simulate([{'label': 'load'}], False)


def test_validation_is_all_or_nothing():
    instructions = [{'label': 'ok', 'speculative': False}, {'label': 3, 'speculative': True}]
    with pytest.raises(ShapeError, match="index 1"):
        Pipeline().simulate(instructions, True)


def test_one_instruction_per_stage():
    views = Pipeline().simulate(build_speculative_sequence(False), mispredict=True)

    assert [v.stage for v in views] == list(STAGES)
    assert [v.instructions[0].label for v in views] == [
        'branch', 'fallthrough', 'dependent read', 'retire'
    ]
    assert [v.instructions[0].speculative for v in views] == [False, True, True, False]


def test_speculative_hidden_without_misprediction():
    views = Pipeline().simulate(build_speculative_sequence(False), mispredict=False)

    assert not any(i.speculative for v in views for i in v.instructions)


def test_non_speculative_never_marked():
    instructions = [Instruction('a', False), Instruction('b', False)]
    views = Pipeline().simulate(instructions, mispredict=True)

    assert not any(i.speculative for v in views for i in v.instructions)


def test_length_mismatch_is_tolerated():
    extra = [{'label': f"i{n}", 'speculative': False} for n in range(6)]
    views = Pipeline().simulate(extra)
    assert [len(v.instructions) for v in views] == [1, 1, 1, 1]

    short = Pipeline().simulate([{'label': 'only', 'speculative': True}], True)
    assert [len(v.instructions) for v in short] == [1, 0, 0, 0]


def test_taken_branch_has_no_wrong_path():
    sequence = build_speculative_sequence(True)

    assert sequence[1].label == 'target load'
    assert not any(i.speculative for i in sequence)


def test_stage_view_to_dict():
    view = Pipeline().simulate([{'label': 'x', 'speculative': True}], True)[0]
    assert view.to_dict() == {
        'stage': 'fetch',
        'instructions': [{'label': 'x', 'speculative': True}],
    }
