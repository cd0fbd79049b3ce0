"""chessbridge: chess data model plus a UCI engine integration layer."""

__version__ = "0.1.0"
