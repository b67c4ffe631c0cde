"""reversiarena — Reversi engine with a tick-driven match orchestrator."""

__version__ = "0.1.0"
