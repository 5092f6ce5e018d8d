"""Command line and program loader tests (no window is opened)."""

import logging

from chip8 import cli
from chip8.constants import PROGRAM_SIZE


class TestArguments:

    def test_defaults(self):
        args = cli.aparser.parse_args(["pong.ch8"])
        assert args.program == "pong.ch8"
        assert args.seed is None
        assert args.cpu_hz == 500
        assert args.scale == 10
        assert args.debug is False

    def test_hex_seed(self):
        args = cli.aparser.parse_args(["pong.ch8", "--seed", "0x10", "--cpu-hz", "700", "--debug"])
        assert args.seed == 16
        assert args.cpu_hz == 700
        assert args.debug is True


class TestReadProgram:

    def test_reads_bytes(self, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(b"\x00\xE0\x12\x00")
        assert cli.read_program(rom) == b"\x00\xE0\x12\x00"

    def test_missing_file_exits_nonzero(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            assert cli.main([str(tmp_path / "missing.ch8")]) == 1
        assert "Cannot read program" in caplog.text

    def test_oversized_program_exits_nonzero(self, tmp_path, caplog):
        rom = tmp_path / "huge.ch8"
        rom.write_bytes(bytes(PROGRAM_SIZE + 2))
        with caplog.at_level(logging.ERROR):
            assert cli.main([str(rom)]) == 1
        assert "too large" in caplog.text
