"""Frame-level reading of Counter-Strike demo files, with game-state containers and event dispatching."""

__version__ = "0.1.0"