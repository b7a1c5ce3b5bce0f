"""HTTP wrapper around the whisper.cpp command line transcriber."""

__version__ = "0.1.0"
