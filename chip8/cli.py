import argparse
import logging
import sys

from .machine import Machine

logger = logging.getLogger(__name__)

aparser = argparse.ArgumentParser(prog="chip8", description="CHIP-8 emulator")
aparser.add_argument('program',
    help="A compiled CHIP-8 program to load")
aparser.add_argument('--seed',
    help="Seed for the random number instruction (default: OS entropy)",
    type=lambda x: int(x, 0),
    default=None)
aparser.add_argument('--cpu-hz',
    help="Instructions executed per second",
    type=int,
    default=500)
aparser.add_argument('--scale',
    help="Host pixels per CHIP-8 pixel",
    type=int,
    default=10)
aparser.add_argument('--debug',
    help="Enable verbose debug logging",
    action="store_true")


def read_program(path):
    """Read a program image from disk"""
    with open(path, 'rb') as p:
        return p.read()


def main(argv=None):
    args = aparser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        program = read_program(args.program)
    except OSError as e:
        logger.error(f"Cannot read program {args.program}: {e}")
        return 1

    machine = Machine(args.seed)
    logger.info(f"Loading program {args.program}")
    if not machine.load(program):
        return 1

    # imported here so the machine can be driven without a display
    import pyglet
    from .window import Chip8Window

    Chip8Window(machine, cpu_hz=args.cpu_hz, scale=args.scale)
    logger.info("Emulation starting")
    pyglet.app.run()
    logger.info("Emulation halted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
