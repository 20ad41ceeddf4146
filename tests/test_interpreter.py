"""End-to-end execution of Piet programs drawn as PNG files."""

import io

import pytest

import piet_interpreter
from piet_interpreter import (
    MAX_STEPS,
    Color,
    ConfigurationError,
    ImageLoadError,
    PietInterpreter,
    Position,
    ProgramGrid,
    Status,
)

LR, R, DR = Color.LIGHT_RED, Color.RED, Color.DARK_RED
DY, DM = Color.DARK_YELLOW, Color.DARK_MAGENTA
G, K = Color.GREEN, Color.BLACK

# push 4, out_number, then the right-hand block has no exit
PRINT_FOUR = [
    [LR, K, K, K, DM],
    [LR, LR, LR, R, DM],
    [K, K, K, K, DM],
]

# push 2, push 3, add, then bounces between the last two blocks
PUSH_PUSH_ADD = [
    [LR, LR, R, R, R, DR, K],
    [K, K, K, K, K, DY, K],
]


def make_interpreter(source, stdin="", **kwargs):
    return PietInterpreter(
        source,
        stdin=io.StringIO(stdin),
        stdout=io.StringIO(),
        stderr=io.StringIO(),
        **kwargs,
    )


def test_uniform_program_is_blocked_on_first_step(write_program):
    interp = make_interpreter(str(write_program([[R] * 3] * 3)))

    assert interp.run() is Status.BLOCKED
    assert interp.steps == 1
    assert interp.position == Position(0, 0)
    assert interp.stack == []


def test_print_program(write_program):
    interp = make_interpreter(str(write_program(PRINT_FOUR)))

    assert interp.run() is Status.BLOCKED
    assert interp.machine.stdout.getvalue() == "4"
    assert interp.steps == 3


def _snapshot(interp):
    return interp.position, list(interp.stack), interp.steps, interp.stderr.getvalue()


def test_step_after_cancel_does_nothing():
    interp = make_interpreter(ProgramGrid.from_colors([[R, G]]))
    assert interp.run(lambda: True) is Status.CANCELLED
    before = _snapshot(interp)

    assert interp.step() is Status.CANCELLED
    assert _snapshot(interp) == before
    assert interp.position == Position(0, 0)


def test_step_after_blocked_does_nothing(write_program):
    interp = make_interpreter(str(write_program(PRINT_FOUR)))
    assert interp.run() is Status.BLOCKED
    before = _snapshot(interp)

    assert interp.step() is Status.BLOCKED
    assert _snapshot(interp) == before
    assert interp.machine.stdout.getvalue() == "4"


def test_step_after_step_limit_does_nothing():
    interp = make_interpreter(ProgramGrid.from_colors([[R, G]]))
    assert interp.run() is Status.STEP_LIMIT
    before = _snapshot(interp)

    assert interp.step() is Status.STEP_LIMIT
    assert interp.run() is Status.STEP_LIMIT
    assert _snapshot(interp) == before
    assert interp.stderr.getvalue().count("terminated after") == 1
    assert interp.position == Position(4, 1)


def test_codel_size_scales_program(write_program):
    path = write_program(PRINT_FOUR, codel_size=5)
    interp = make_interpreter(str(path), codel_size=5)

    assert interp.run() is Status.BLOCKED
    assert interp.machine.stdout.getvalue() == "4"


def test_push_push_add(write_program):
    interp = make_interpreter(str(write_program(PUSH_PUSH_ADD)))

    for _ in range(2):
        interp.step()
    assert interp.stack == [2, 3]

    interp.step()
    assert interp.stack == [5]
    assert interp.position == Position(5, 1)


def test_oscillating_program_stops_at_step_limit():
    grid = ProgramGrid.from_colors([[R, G]])
    interp = make_interpreter(grid)

    assert interp.run() is Status.STEP_LIMIT
    assert interp.steps == MAX_STEPS == 10000
    assert "terminated after 10000 steps" in interp.stderr.getvalue()


def test_step_limit_keeps_stack_and_output(write_program):
    interp = make_interpreter(str(write_program(PUSH_PUSH_ADD)))

    assert interp.run() is Status.STEP_LIMIT
    assert interp.stack == [5]
    assert interp.machine.stdout.getvalue() == ""


def test_debug_trace(write_program):
    interp = make_interpreter(str(write_program(PRINT_FOUR)), debug=True)
    interp.run()

    trace = interp.stderr.getvalue().splitlines()
    assert trace == [
        "  Command: push (blockSize: 4, hue: 0, light: 1)",
        "Step 1: Pos(3,1) Color:Red Stack:[4]",
        "  Command: out_number (blockSize: 1, hue: 5, light: 1)",
        "Step 2: Pos(4,1) Color:DarkMagenta Stack:[]",
    ]


def test_no_trace_without_debug(write_program):
    interp = make_interpreter(str(write_program(PRINT_FOUR)))
    interp.run()
    assert interp.stderr.getvalue() == ""


def test_cancellation_hook():
    interp = make_interpreter(ProgramGrid.from_colors([[R, G]]))
    polls = []

    def should_stop():
        polls.append(1)
        return len(polls) > 3

    assert interp.run(should_stop) is Status.CANCELLED
    assert interp.steps == 3


def test_invalid_codel_size():
    with pytest.raises(ConfigurationError):
        PietInterpreter("whatever.png", codel_size=0)


def test_missing_image(tmp_path):
    with pytest.raises(ImageLoadError):
        PietInterpreter(str(tmp_path / "nope.png"))


# CLI

def test_cli_runs_program(write_program, capsys):
    piet_interpreter.main(["-i", str(write_program(PRINT_FOUR))])
    assert capsys.readouterr().out == "4\n"


def test_cli_codel_size(write_program, capsys):
    path = write_program(PRINT_FOUR, codel_size=3)
    piet_interpreter.main(["-i", str(path), "--codel-size", "3"])
    assert capsys.readouterr().out == "4\n"


def test_cli_rejects_bad_codel_size(write_program):
    with pytest.raises(SystemExit) as exc:
        piet_interpreter.main(["-i", str(write_program(PRINT_FOUR)), "-c", "0"])
    assert exc.value.code == 2


def test_cli_missing_image(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        piet_interpreter.main(["-i", str(tmp_path / "missing.png")])
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err
