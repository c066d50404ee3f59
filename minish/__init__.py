"""Shell building blocks: environment, expansion, lexing, parsing and builtins."""

__version__ = "0.1.0"