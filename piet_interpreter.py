#!/usr/bin/env python3
"""
Piet Programming Language Interpreter

Executes a Piet program: an image whose codels are grouped into same-color
blocks. The interpreter walks from block to block and decodes every color
transition into a stack machine operation.

Examples:
    # Run a program drawn with one pixel per codel
    python3 piet_interpreter.py -i hello.png

    # Run a program scaled up 10x, tracing every step to stderr
    python3 piet_interpreter.py -i hello_big.png --codel-size 10 --debug
"""

import sys
import argparse
import numbers
from collections import deque
from enum import Enum, IntEnum
from typing import Callable, List, NamedTuple, Optional, TextIO

import numpy as np
from PIL import Image, UnidentifiedImageError


# Constants

# Forced termination after this many steps
MAX_STEPS = 10000

# Blocked attempts before a program is considered finished (4 DP x 2 CC)
MAX_ATTEMPTS = 8


class ConfigurationError(ValueError):
    """Invalid interpreter configuration (e.g. codel size < 1)."""


class ImageLoadError(OSError):
    """Program image is missing or cannot be decoded."""


class Color(IntEnum):
    LIGHT_RED = 0
    RED = 1
    DARK_RED = 2
    LIGHT_YELLOW = 3
    YELLOW = 4
    DARK_YELLOW = 5
    LIGHT_GREEN = 6
    GREEN = 7
    DARK_GREEN = 8
    LIGHT_CYAN = 9
    CYAN = 10
    DARK_CYAN = 11
    LIGHT_BLUE = 12
    BLUE = 13
    DARK_BLUE = 14
    LIGHT_MAGENTA = 15
    MAGENTA = 16
    DARK_MAGENTA = 17
    WHITE = 18
    BLACK = 19
    UNKNOWN = 20

    @property
    def hue(self) -> int:
        """Hue index 0-5 (red..magenta), -1 for white/black/unknown."""
        return self.value // 3 if self.value < 18 else -1

    @property
    def lightness(self) -> int:
        """Lightness index 0-2 (light, normal, dark), -1 for white/black/unknown."""
        return self.value % 3 if self.value < 18 else -1

    @property
    def label(self) -> str:
        """CamelCase name used in traces, e.g. LightRed."""
        return ''.join(part.capitalize() for part in self.name.split('_'))


# Piet palette (18 colors + white/black), in enumeration order
PALETTE = (
    ((255, 192, 192), Color.LIGHT_RED),
    ((255, 0, 0), Color.RED),
    ((192, 0, 0), Color.DARK_RED),
    ((255, 255, 192), Color.LIGHT_YELLOW),
    ((255, 255, 0), Color.YELLOW),
    ((192, 192, 0), Color.DARK_YELLOW),
    ((192, 255, 192), Color.LIGHT_GREEN),
    ((0, 255, 0), Color.GREEN),
    ((0, 192, 0), Color.DARK_GREEN),
    ((192, 255, 255), Color.LIGHT_CYAN),
    ((0, 255, 255), Color.CYAN),
    ((0, 192, 192), Color.DARK_CYAN),
    ((192, 192, 255), Color.LIGHT_BLUE),
    ((0, 0, 255), Color.BLUE),
    ((0, 0, 192), Color.DARK_BLUE),
    ((255, 192, 255), Color.LIGHT_MAGENTA),
    ((255, 0, 255), Color.MAGENTA),
    ((192, 0, 192), Color.DARK_MAGENTA),
    ((255, 255, 255), Color.WHITE),
    ((0, 0, 0), Color.BLACK),
)

PALETTE_LOOKUP = {rgb: color for rgb, color in PALETTE}
PALETTE_RGB = np.array([rgb for rgb, _ in PALETTE], dtype=np.int64)
PALETTE_CODES = np.array([int(color) for _, color in PALETTE], dtype=np.int8)

# Color transition (hue delta, lightness delta) -> command
COMMANDS = {
    0: {1: "push", 2: "pop"},
    1: {0: "add", 1: "subtract", 2: "multiply"},
    2: {0: "divide", 1: "mod", 2: "not"},
    3: {0: "greater", 1: "pointer", 2: "switch"},
    4: {0: "duplicate", 1: "roll", 2: "in_number"},
    5: {0: "in_char", 1: "out_number", 2: "out_char"},
}


class Direction(IntEnum):
    RIGHT = 0
    DOWN = 1
    LEFT = 2
    UP = 3

    def rotated(self, turns: int = 1) -> "Direction":
        """Rotate clockwise by the given number of quarter turns."""
        return Direction((self.value + turns) % 4)


class Chooser(IntEnum):
    LEFT = 0
    RIGHT = 1

    def toggled(self) -> "Chooser":
        return Chooser(1 - self.value)


# Direction pointer vectors: right, down, left, up
DP_VECS = [(1, 0), (0, 1), (-1, 0), (0, -1)]


class Position(NamedTuple):
    x: int
    y: int

    def step(self, dp: Direction) -> "Position":
        dx, dy = DP_VECS[dp]
        return Position(self.x + dx, self.y + dy)


class ColorBlock(NamedTuple):
    color: Color
    codels: frozenset

    @property
    def size(self) -> int:
        return len(self.codels)


class Move(NamedTuple):
    """Outcome of one navigation: target codel (None if blocked) and pointer state."""
    position: Optional[Position]
    dp: Direction
    cc: Chooser
    attempts: int

    @property
    def blocked(self) -> bool:
        return self.position is None


class Status(Enum):
    RUNNING = "running"
    BLOCKED = "blocked"
    STEP_LIMIT = "step-limit"
    CANCELLED = "cancelled"


# Color Classification

def classify(rgb) -> Color:
    """
    Map a pixel to a Piet color.

    Exact palette matches are returned directly; anything else snaps to the
    nearest palette entry by Euclidean RGB distance (first minimum wins).
    """
    rgb = tuple(int(c) for c in rgb[:3])
    color = PALETTE_LOOKUP.get(rgb)
    if color is not None:
        return color

    best_dist = None
    closest = Color.WHITE
    for candidate, candidate_color in PALETTE:
        dist = sum((a - b) ** 2 for a, b in zip(rgb, candidate))
        if best_dist is None or dist < best_dist:
            best_dist = dist
            closest = candidate_color
    return closest


def classify_pixels(pixels: np.ndarray) -> np.ndarray:
    """
    Classify an (H, W, 3) pixel array into an (H, W) array of color codes.

    Same result as calling classify() per pixel: only strictly closer
    entries replace the current best, so the first minimum wins.
    """
    rgb = np.asarray(pixels)[..., :3].astype(np.int32)
    best = np.full(rgb.shape[:-1], np.iinfo(np.int32).max, dtype=np.int32)
    codes = np.zeros(rgb.shape[:-1], dtype=np.int8)

    # one palette entry at a time keeps memory at a few (H, W) arrays
    for entry, code in zip(PALETTE_RGB, PALETTE_CODES):
        dist = ((rgb - entry.astype(np.int32)) ** 2).sum(axis=-1, dtype=np.int32)
        closer = dist < best
        best[closer] = dist[closer]
        codes[closer] = code
    return codes


# Image Loading

def load_pixels(path: str) -> np.ndarray:
    """Load an image as an (H, W, 3) uint8 RGB array."""
    try:
        with Image.open(path) as img:
            return np.array(img.convert("RGB"))
    except FileNotFoundError:
        raise ImageLoadError(f"Image file not found: {path}")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadError(f"Failed to open image: {e}")


# Program Grid

class ProgramGrid:
    """Read-only grid of codel colors, indexed by Position."""

    def __init__(self, codes: np.ndarray):
        codes = np.array(codes, dtype=np.int8)
        if codes.ndim != 2 or codes.size == 0:
            raise ConfigurationError("Program grid must be a non-empty 2D array")
        codes.setflags(write=False)
        self.codes = codes
        self.height, self.width = codes.shape

    @classmethod
    def from_colors(cls, rows: List[List[Color]]) -> "ProgramGrid":
        """Build a grid from rows of Color values (row-major)."""
        return cls(np.array([[int(c) for c in row] for row in rows]))

    @classmethod
    def from_pixels(cls, pixels: np.ndarray, codel_size: int = 1) -> "ProgramGrid":
        """Sample the top-left pixel of every codel_size x codel_size block."""
        check_codel_size(codel_size)
        pixels = np.asarray(pixels)
        h, w = pixels.shape[0] // codel_size, pixels.shape[1] // codel_size
        if h == 0 or w == 0:
            raise ConfigurationError(
                f"Codel size {codel_size} is larger than the image "
                f"({pixels.shape[1]}x{pixels.shape[0]})"
            )
        sampled = pixels[0:h * codel_size:codel_size, 0:w * codel_size:codel_size]
        return cls(classify_pixels(sampled))

    @classmethod
    def from_image(cls, path: str, codel_size: int = 1) -> "ProgramGrid":
        check_codel_size(codel_size)
        return cls.from_pixels(load_pixels(path), codel_size)

    def __contains__(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def __getitem__(self, pos: Position) -> Color:
        return Color(int(self.codes[pos.y, pos.x]))


def check_codel_size(codel_size: int) -> None:
    if (not isinstance(codel_size, numbers.Integral) or isinstance(codel_size, bool)
            or codel_size < 1):
        raise ConfigurationError(f"Codel size must be >= 1, got {codel_size!r}")


# Region Location

def find_block(grid: ProgramGrid, start: Position) -> ColorBlock:
    """Breadth-first flood fill of the same-color block containing start."""
    color = grid[start]
    queue = deque([start])
    seen = {start}

    while queue:
        pos = queue.popleft()
        for dp in Direction:
            adj = pos.step(dp)
            if adj not in seen and adj in grid and grid[adj] == color:
                seen.add(adj)
                queue.append(adj)

    return ColorBlock(color, frozenset(seen))


# Navigation

def edge_codels(block: ColorBlock, dp: Direction) -> List[Position]:
    """Codels of the block furthest in the DP direction."""
    dx, dy = DP_VECS[dp]
    best = max(x * dx + y * dy for x, y in block.codels)
    return [p for p in block.codels if p.x * dx + p.y * dy == best]


def choose_codel(edge: List[Position], dp: Direction, cc: Chooser) -> Position:
    """
    Pick one edge codel: for horizontal travel the minimum row (CC left) or
    maximum row (CC right); for vertical travel the same on columns.
    """
    if dp in (Direction.RIGHT, Direction.LEFT):
        key = lambda p: (p.y, p.x)
    else:
        key = lambda p: (p.x, p.y)
    return min(edge, key=key) if cc == Chooser.LEFT else max(edge, key=key)


def exit_codel(block: ColorBlock, dp: Direction, cc: Chooser) -> Position:
    return choose_codel(edge_codels(block, dp), dp, cc)


def next_cell(grid: ProgramGrid, block: ColorBlock, dp: Direction, cc: Chooser) -> Move:
    """
    Find the codel the program moves to from block.

    A blocked attempt (off the grid or into black) rotates DP clockwise and,
    on every odd attempt, also toggles CC. After MAX_ATTEMPTS failures the
    move is blocked.
    """
    for attempt in range(MAX_ATTEMPTS):
        target = exit_codel(block, dp, cc).step(dp)
        if target in grid and grid[target] != Color.BLACK:
            return Move(target, dp, cc, attempt + 1)

        dp = dp.rotated()
        if attempt % 2 == 1:
            cc = cc.toggled()

    return Move(None, dp, cc, MAX_ATTEMPTS)


# Command Decoding

def color_delta(old_color: Color, new_color: Color):
    """Return (hue delta, lightness delta), or None for white/black/unknown."""
    if old_color.hue < 0 or new_color.hue < 0:
        return None
    dh = (new_color.hue - old_color.hue + 6) % 6
    dl = (new_color.lightness - old_color.lightness + 3) % 3
    return dh, dl


def decode(old_color: Color, new_color: Color) -> Optional[str]:
    """Determine command from color transition (None means no-op)."""
    delta = color_delta(old_color, new_color)
    if delta is None:
        return None
    dh, dl = delta
    return COMMANDS.get(dh, {}).get(dl)


# Stack Machine

def trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def trunc_mod(a: int, b: int) -> int:
    """Remainder with the sign of the dividend (pairs with trunc_div)."""
    return a - b * trunc_div(a, b)


class StackMachine:
    """
    Integer stack plus DP/CC state.

    Operations that lack operands, divide by zero or roll to an invalid depth
    have no effect instead of raising.
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None,
                 prompt: Optional[TextIO] = None):
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.prompt = prompt if prompt is not None else sys.stderr
        self.stack: List[int] = []
        self.dp = Direction.RIGHT
        self.cc = Chooser.LEFT

    def execute(self, cmd: Optional[str], block_size: int) -> None:
        if cmd is None:
            return
        getattr(self, "op_" + cmd)(block_size)

    def _pop_pair(self):
        """Pop (a, b) where b was on top, or None with fewer than two values."""
        if len(self.stack) < 2:
            return None
        b = self.stack.pop()
        a = self.stack.pop()
        return a, b

    def op_push(self, block_size: int) -> None:
        self.stack.append(block_size)

    def op_pop(self, _size: int) -> None:
        if self.stack:
            self.stack.pop()

    def op_add(self, _size: int) -> None:
        pair = self._pop_pair()
        if pair:
            self.stack.append(pair[0] + pair[1])

    def op_subtract(self, _size: int) -> None:
        pair = self._pop_pair()
        if pair:
            self.stack.append(pair[0] - pair[1])

    def op_multiply(self, _size: int) -> None:
        pair = self._pop_pair()
        if pair:
            self.stack.append(pair[0] * pair[1])

    def op_divide(self, _size: int) -> None:
        # both operands are consumed even when the divisor is zero
        pair = self._pop_pair()
        if pair and pair[1] != 0:
            self.stack.append(trunc_div(*pair))

    def op_mod(self, _size: int) -> None:
        pair = self._pop_pair()
        if pair and pair[1] != 0:
            self.stack.append(trunc_mod(*pair))

    def op_not(self, _size: int) -> None:
        if self.stack:
            self.stack.append(1 if self.stack.pop() == 0 else 0)

    def op_greater(self, _size: int) -> None:
        pair = self._pop_pair()
        if pair:
            self.stack.append(1 if pair[0] > pair[1] else 0)

    def op_pointer(self, _size: int) -> None:
        if self.stack:
            # negative remainders rotate zero times
            turns = trunc_mod(self.stack.pop(), 4)
            if turns > 0:
                self.dp = self.dp.rotated(turns)

    def op_switch(self, _size: int) -> None:
        if self.stack:
            if trunc_mod(self.stack.pop(), 2) == 1:
                self.cc = self.cc.toggled()

    def op_duplicate(self, _size: int) -> None:
        if self.stack:
            self.stack.append(self.stack[-1])

    def op_roll(self, _size: int) -> None:
        pair = self._pop_pair()
        if not pair:
            return
        depth, rolls = pair
        # invalid depth: the two operands stay consumed
        if 0 < depth <= len(self.stack):
            r = rolls % depth
            if r:
                top = self.stack[-depth:]
                self.stack[-depth:] = top[-r:] + top[:-r]

    def op_in_number(self, _size: int) -> None:
        self.prompt.write("Enter number: ")
        self.prompt.flush()
        line = self.stdin.readline()
        try:
            self.stack.append(int(line.strip()))
        except ValueError:
            pass

    def op_in_char(self, _size: int) -> None:
        char = self.stdin.read(1)
        if char:
            self.stack.append(ord(char))

    def op_out_number(self, _size: int) -> None:
        if self.stack:
            self.stdout.write(str(self.stack.pop()))

    def op_out_char(self, _size: int) -> None:
        if self.stack:
            val = self.stack.pop()
            self.stdout.write(chr(val) if 32 <= val <= 126 else f"[{val}]")


# Interpreter

class PietInterpreter:
    def __init__(
        self,
        source,
        codel_size: int = 1,
        debug: bool = False,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        """
        Load a Piet program.

        Args:
            source: Image path, or an already built ProgramGrid
            codel_size: Pixels per codel edge (>= 1)
            debug: Trace every step to stderr
            stdin/stdout/stderr: Streams for program I/O and diagnostics
        """
        check_codel_size(codel_size)
        if isinstance(source, ProgramGrid):
            self.grid = source
        else:
            self.grid = ProgramGrid.from_image(source, codel_size)

        self.debug = debug
        self.stderr = stderr if stderr is not None else sys.stderr
        self.machine = StackMachine(stdin, stdout, self.stderr)
        self.position = Position(0, 0)
        self.steps = 0
        self.status = Status.RUNNING

    @property
    def stack(self) -> List[int]:
        return self.machine.stack

    def step(self) -> Status:
        """Execute one transition; returns the resulting status."""
        if self.status is not Status.RUNNING:
            return self.status

        self.steps += 1
        if self.steps >= MAX_STEPS:
            print(f"\nExecution terminated after {MAX_STEPS} steps to prevent infinite loop.",
                  file=self.stderr)
            self.status = Status.STEP_LIMIT
            return self.status

        machine = self.machine
        block = find_block(self.grid, self.position)
        move = next_cell(self.grid, block, machine.dp, machine.cc)
        machine.dp, machine.cc = move.dp, move.cc

        if move.blocked:
            self.status = Status.BLOCKED
            return self.status

        next_color = self.grid[move.position]
        cmd = decode(block.color, next_color)
        if self.debug and cmd:
            dh, dl = color_delta(block.color, next_color)
            print(f"  Command: {cmd} (blockSize: {block.size}, hue: {dh}, light: {dl})",
                  file=self.stderr)
        machine.execute(cmd, block.size)

        self.position = move.position
        if self.debug:
            stack = ",".join(str(v) for v in reversed(machine.stack))
            print(f"Step {self.steps}: Pos({self.position.x},{self.position.y}) "
                  f"Color:{next_color.label} Stack:[{stack}]", file=self.stderr)
        return self.status

    def run(self, should_stop: Optional[Callable[[], bool]] = None) -> Status:
        """
        Execute until the program is blocked or hits MAX_STEPS.

        should_stop is polled before every step; returning True cancels the run.
        """
        try:
            while self.status is Status.RUNNING:
                if should_stop is not None and should_stop():
                    self.status = Status.CANCELLED
                    break
                self.step()
        finally:
            self.machine.stdout.flush()
        return self.status


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Piet esoteric language interpreter',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('-i', '--input', required=True,
                        help='Piet program image (PNG, GIF, BMP, ...)')
    parser.add_argument('-c', '--codel-size', type=int, default=1,
                        help='Size of each codel in pixels (default: 1)')
    parser.add_argument('-d', '--debug', action='store_true',
                        help='Trace program execution to stderr')

    args = parser.parse_args(argv)

    if args.codel_size < 1:
        parser.error('Codel size must be >= 1')

    try:
        interpreter = PietInterpreter(args.input, args.codel_size, args.debug)
        interpreter.run()
        print()  # Final newline
    except (ImageLoadError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n[Interrupted]", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
