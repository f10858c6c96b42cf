"""depdelta: explore the structural changelog between two project versions."""

__version__ = "0.1.0"
