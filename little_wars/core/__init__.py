"""Core game engine: board, symbol generation, spin resolution and rounds."""
