#!/usr/bin/env python3
"""
mu0kit — MU0 Assembler / Emulator Toolkit
==========================================

One CLI for everything:
    mu0kit tokens — Dump the token stream of a source file
    mu0kit asm    — Assemble and print the memory listing
    mu0kit run    — Assemble and run until STP
    mu0kit step   — Assemble and single-step interactively

Usage:
    python mu0kit.py <command> [options]
    python mu0kit.py --help
    python mu0kit.py <command> --help

Examples:
    python mu0kit.py tokens examples/sum.s
    python mu0kit.py asm examples/sum.s -o sum.lst
    python mu0kit.py run examples/countdown.s --trace
    python mu0kit.py run examples/countdown.s --profile bounded --break LOOP
    python mu0kit.py step examples/multiply.s

Exit status: 0 on STP, 1 on assembly/execution/IO errors, 2 when a run stops
at a breakpoint or runs out of steps.
"""

import argparse
import logging
import sys

from mu0_assembler import Assembler, Mu0Error, ParseError, format_token, parse_decimal, tokenize
from mu0_emulator import ExecutionFault, MACHINE_PROFILES, Mu0Emulator, StepResult, StopReason

__version__ = "0.1.0"

logger = logging.getLogger("mu0kit")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="mu0kit",
        description="MU0 Toolkit — assemble, inspect and run MU0 programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  tokens     Dump the token stream (label: MNEMONIC(operand))
  asm        Assemble and print the memory listing
  run        Assemble and run until STP
  step       Assemble and single-step interactively
""",
    )
    parser.add_argument("--version", action="version", version=f"mu0kit {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every token and step (DEBUG)")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── tokens ───────────────────────────────────────────────────────────
    p_tok = sub.add_parser("tokens", help="Dump the token stream")
    p_tok.add_argument("input", help="Input .s file")

    # ── asm ──────────────────────────────────────────────────────────────
    p_asm = sub.add_parser("asm", help="Assemble and print the memory listing")
    p_asm.add_argument("input", help="Input .s file")
    p_asm.add_argument("-o", "--output", help="Write the listing to a file instead of stdout")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Assemble and run until STP")
    p_run.add_argument("input", help="Input .s file")
    p_run.add_argument("--profile", default="default", choices=list(MACHINE_PROFILES),
                       help="Machine profile (default: default)")
    p_run.add_argument("--max-steps", type=int, default=None,
                       help="Stop after N steps (overrides the profile)")
    p_run.add_argument("--break", dest="breakpoints", action="append", default=[],
                       metavar="ADDR|LABEL", help="Stop before executing this cell (repeatable)")
    p_run.add_argument("--trace", action="store_true",
                       help="Print PC, instruction and ACC after every step")

    # ── step ─────────────────────────────────────────────────────────────
    p_step = sub.add_parser("step", help="Assemble and single-step interactively")
    p_step.add_argument("input", help="Input .s file")
    p_step.add_argument("--profile", default="default", choices=list(MACHINE_PROFILES),
                        help="Machine profile (default: default)")

    # ── Parse and dispatch ───────────────────────────────────────────────
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    if not args.command:
        parser.print_help()
        return 0

    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except (Mu0Error, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _read_source(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _resolve_breakpoint(text, program):
    """Breakpoints may name a label or a decimal cell address."""
    addr = program.address_of(text)
    if addr is None:
        addr = parse_decimal(text)
    if addr >= len(program):
        raise ParseError(f"breakpoint outside memory of {len(program)} cells", text)
    return addr


# ── tokens ───────────────────────────────────────────────────────────────
def cmd_tokens(args):
    for tok in tokenize(_read_source(args.input)):
        print(format_token(tok))
    return 0


# ── asm ──────────────────────────────────────────────────────────────────
def cmd_asm(args):
    asm = Assembler()
    program = asm.assemble(_read_source(args.input))

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(asm.get_listing() + "\n")
        print(f"Assembled {len(program)} cells -> {args.output}")
    else:
        print(asm.get_listing())
    return 0


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    program = Assembler().assemble(_read_source(args.input))
    emu = Mu0Emulator(program, profile=args.profile)
    logger.debug("%s: %d cells, profile %s", args.input, len(program), args.profile)
    for bp in args.breakpoints:
        emu.add_breakpoint(_resolve_breakpoint(bp, program))
    emu.enable_trace(args.trace)

    try:
        reason = emu.run(max_steps=args.max_steps)
    finally:
        if args.trace:
            print("\n".join(emu.trace_output))
        print(emu.format_state())

    if reason is StopReason.HALT:
        print(f"Halted after {emu.steps} steps, ACC = {emu.accumulator}")
        return 0
    print(f"Stopped ({reason.value}) at PC = {emu.program_counter} after {emu.steps} steps")
    return 2


# ── step ─────────────────────────────────────────────────────────────────
def cmd_step(args):
    program = Assembler().assemble(_read_source(args.input))
    emu = Mu0Emulator(program, profile=args.profile)
    logger.debug("%s: %d cells, profile %s", args.input, len(program), args.profile)

    while True:
        print(emu.format_state())
        try:
            command = input("[Enter]=step  q=quit > ").strip().lower()
        except EOFError:
            return 0
        if command == "q":
            return 0
        try:
            result = emu.step()
        except ExecutionFault:
            print(emu.format_state())
            raise
        if result is StepResult.HALTED:
            print(emu.format_state())
            print(f"Halted after {emu.steps} steps, ACC = {emu.accumulator}")
            return 0


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND DISPATCH TABLE
# ═════════════════════════════════════════════════════════════════════════════

COMMANDS = {
    "tokens": cmd_tokens,
    "asm": cmd_asm,
    "run": cmd_run,
    "step": cmd_step,
}


if __name__ == "__main__":
    sys.exit(main())
