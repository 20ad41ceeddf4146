#!/usr/bin/env python3
"""
Ook! Interpreter and Translator

Ook! is Brainfuck spelled with pairs of orangutan words: every two tokens
("Ook." / "Ook?" / "Ook!") encode one Brainfuck command.

Modes:
    exec    : Execute an Ook! program
    to-bf   : Translate Ook! source to Brainfuck
    from-bf : Translate Brainfuck source to Ook!

Examples:
    # Run a program
    python3 ook.py exec -i hello.ook

    # Convert to Brainfuck
    python3 ook.py to-bf -i hello.ook -o hello.bf

    # Convert Brainfuck to Ook!
    python3 ook.py from-bf -i hello.bf
"""

import sys
import argparse
from typing import List

import brainfuck


# Token pair <-> Brainfuck command

OOK_TO_BF = {
    ('Ook.', 'Ook?'): '>',
    ('Ook?', 'Ook.'): '<',
    ('Ook.', 'Ook.'): '+',
    ('Ook!', 'Ook!'): '-',
    ('Ook!', 'Ook.'): '.',
    ('Ook.', 'Ook!'): ',',
    ('Ook!', 'Ook?'): '[',
    ('Ook?', 'Ook!'): ']',
}

BF_TO_OOK = {cmd: pair for pair, cmd in OOK_TO_BF.items()}


# Translation

def tokenize(program: str) -> List[str]:
    """Split on whitespace, keeping only words like 'Ook.', 'Ook?' and 'Ook!'."""
    return [
        word for word in program.split()
        if word.startswith('Ook') and word[-1] in '.?!'
    ]


def ook_to_brainfuck(program: str) -> str:
    """
    Translate Ook! to Brainfuck.

    Tokens are read in pairs; unknown pairs and a trailing odd token are skipped.
    """
    tokens = tokenize(program)
    commands = []

    for i in range(0, len(tokens) - 1, 2):
        cmd = OOK_TO_BF.get((tokens[i], tokens[i + 1]))
        if cmd:
            commands.append(cmd)

    return ''.join(commands)


def brainfuck_to_ook(program: str) -> str:
    """Translate Brainfuck to space-separated Ook! tokens (comments dropped)."""
    tokens = []
    for char in program:
        if char in BF_TO_OOK:
            tokens.extend(BF_TO_OOK[char])
    return ' '.join(tokens)


def execute(program: str, input_data: str = '') -> str:
    """Execute an Ook! program via the Brainfuck interpreter."""
    return brainfuck.execute(ook_to_brainfuck(program), input_data)


# Main

def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Ook! interpreter and Brainfuck translator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    subparsers = parser.add_subparsers(dest='command', required=True,
                                       help='Operation mode')

    exec_parser = subparsers.add_parser('exec',
                                        help='Execute Ook! program')
    exec_parser.add_argument('-i', '--input', required=True,
                             help='Ook! program file')
    exec_parser.add_argument('--stdin', default='',
                             help='Text consumed by input commands')
    exec_parser.add_argument('-o', '--output',
                             help='Output file (default: stdout)')

    to_bf_parser = subparsers.add_parser('to-bf',
                                         help='Translate Ook! to Brainfuck')
    to_bf_parser.add_argument('-i', '--input', required=True,
                              help='Ook! program file')
    to_bf_parser.add_argument('-o', '--output',
                              help='Output file (default: stdout)')

    from_bf_parser = subparsers.add_parser('from-bf',
                                           help='Translate Brainfuck to Ook!')
    from_bf_parser.add_argument('-i', '--input', required=True,
                                help='Brainfuck program file')
    from_bf_parser.add_argument('-o', '--output',
                                help='Output file (default: stdout)')

    args = parser.parse_args(argv)

    try:
        source = brainfuck.read_program(args.input)

        if args.command == 'exec':
            result = execute(source, args.stdin)
        elif args.command == 'to-bf':
            result = ook_to_brainfuck(source) + '\n'
        else:  # from-bf
            result = brainfuck_to_ook(source) + '\n'

        brainfuck.write_output(result, args.output)

    except (FileNotFoundError, brainfuck.BrainfuckError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except KeyboardInterrupt:
        print("\n[Interrupted]", file=sys.stderr)
        sys.exit(130)


if __name__ == '__main__':
    main()
