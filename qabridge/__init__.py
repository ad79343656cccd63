"""Read-only MySQL tools for agents, optionally tunnelled over SSH."""

__version__ = "0.1.0"
