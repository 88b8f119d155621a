"""Little Wars: territory-capture reel game engine."""

__version__ = "0.1.0"
