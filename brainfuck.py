#!/usr/bin/env python3
"""
Brainfuck Interpreter

Runs a Brainfuck program on a 30,000 cell byte tape. Both the data pointer
and the cell values wrap around. Characters other than the eight commands
are comments.

Examples:
    # Run a program
    python3 brainfuck.py -i hello.bf

    # Feed input to ',' commands
    python3 brainfuck.py -i rot13.bf --stdin "Uryyb"

    # Save program output
    python3 brainfuck.py -i hello.bf -o out.txt
"""

import sys
import argparse
from pathlib import Path
from typing import Optional


# Constants

MEMORY_SIZE = 30000


class BrainfuckError(Exception):
    """Program cannot be executed (e.g. unmatched ']')."""


# Execution

def execute(program: str, input_data: str = '') -> str:
    """Execute a Brainfuck program and return everything it printed."""
    memory = bytearray(MEMORY_SIZE)
    ptr = 0
    ip = 0
    in_pos = 0
    output = []
    loop_stack = []

    while ip < len(program):
        cmd = program[ip]

        if cmd == '>':
            ptr = (ptr + 1) % MEMORY_SIZE
        elif cmd == '<':
            ptr = (ptr - 1) % MEMORY_SIZE
        elif cmd == '+':
            memory[ptr] = (memory[ptr] + 1) % 256
        elif cmd == '-':
            memory[ptr] = (memory[ptr] - 1) % 256
        elif cmd == '.':
            output.append(chr(memory[ptr]))
        elif cmd == ',':
            # End of input reads as 0
            if in_pos < len(input_data):
                memory[ptr] = ord(input_data[in_pos]) % 256
                in_pos += 1
            else:
                memory[ptr] = 0
        elif cmd == '[':
            if memory[ptr] == 0:
                # Skip forward to the matching ']'
                depth = 1
                ip += 1
                while ip < len(program) and depth > 0:
                    if program[ip] == '[':
                        depth += 1
                    elif program[ip] == ']':
                        depth -= 1
                    ip += 1
                ip -= 1
            else:
                loop_stack.append(ip)
        elif cmd == ']':
            if not loop_stack:
                raise BrainfuckError(f"Unmatched ']' at position {ip}")
            if memory[ptr] != 0:
                ip = loop_stack[-1]
            else:
                loop_stack.pop()

        ip += 1

    return ''.join(output)


# File I/O

def read_program(path: str) -> str:
    """Read a program file as UTF-8 text."""
    program_path = Path(path)
    if not program_path.is_file():
        raise FileNotFoundError(f"Program file not found: {path}")
    return program_path.read_text(encoding='utf-8', errors='ignore')


def execute_file(path: str, input_data: str = '') -> str:
    return execute(read_program(path), input_data)


def write_output(content: str, path: Optional[str]) -> None:
    """Write output to file or stdout."""
    if path:
        Path(path).write_text(content, encoding='utf-8')
        print(f"Saved: {path}", file=sys.stderr)
    else:
        sys.stdout.write(content)
        sys.stdout.flush()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Brainfuck interpreter',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('-i', '--input', required=True,
                        help='Brainfuck program file')
    parser.add_argument('--stdin', default='',
                        help='Text consumed by , commands (default: empty)')
    parser.add_argument('-o', '--output',
                        help='Output file (default: stdout)')

    args = parser.parse_args(argv)

    try:
        write_output(execute_file(args.input, args.stdin), args.output)

    except (FileNotFoundError, BrainfuckError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except KeyboardInterrupt:
        print("\n[Interrupted]", file=sys.stderr)
        sys.exit(130)


if __name__ == '__main__':
    main()
