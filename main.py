#!/usr/bin/env python3
"""regmachine Command Line Interface.

Assemble and run register-machine programs.

Usage:
    python main.py --program programs/sum_1_to_10.asm
    python main.py --inline "MOV AX, 5; INC AX, 2" --quiet
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from regmachine import Engine, MachineError, parse_program


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="regmachine: four-register machine interpreter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run the sum_1_to_10 program
    python main.py --program programs/sum_1_to_10.asm

    # Run fibonacci with full trace output
    python main.py --program programs/fibonacci.asm --trace

    # Guard against runaway loops
    python main.py --program programs/multiply.asm --max-steps 1000

    # Run inline assembly
    python main.py --inline "MOV AX, 42; DEC AX"
        """
    )

    parser.add_argument(
        "--program", "-p",
        type=str,
        help="Path to assembly program file (.asm)"
    )
    parser.add_argument(
        "--inline", "-i",
        type=str,
        help="Inline assembly (separate statements with ;)"
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Stop with an error after this many instructions. Default: no limit"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace"
    )
    parser.add_argument(
        "--listing", "-l",
        action="store_true",
        help="Print the assembled program before running it"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Minimal output (AX BX CX DX only)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Validate arguments
    if not args.program and not args.inline:
        parser.error("Either --program or --inline is required")

    if args.max_steps is not None and args.max_steps < 0:
        parser.error("--max-steps must be non-negative")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    # Load program
    if args.program:
        program_path = Path(args.program)
        if not program_path.exists():
            print(f"Error: Program file not found: {args.program}", file=sys.stderr)
            return 1
        try:
            source = program_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: Cannot read {args.program}: {e}", file=sys.stderr)
            return 1
        if not args.quiet:
            print(f"Loading program: {args.program}")
    else:
        # Inline assembly
        source = args.inline.replace(";", "\n")
        if not args.quiet:
            print("Running inline assembly")

    engine = Engine(max_steps=args.max_steps, trace=args.trace)

    try:
        program = parse_program(source)
        if args.listing:
            print(program.listing())

        if not args.quiet:
            print("-" * 60)
            print("Executing...")
            print("-" * 60)

        result = engine.execute(program)
    except MachineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Output
    if args.trace:
        result.print_trace()
    elif not args.quiet:
        print()
        summary = result.get_summary()
        print(f"Cycles: {summary['cycles']}")
        print(f"Registers: {summary['registers']}")
        print(f"Flag: {summary['flag']}")
    else:
        # Quiet mode - just the four values
        print(" ".join(str(v) for v in result.values))

    return 0


if __name__ == "__main__":
    sys.exit(main())
