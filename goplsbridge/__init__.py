"""Run gopls queries and get back locations, symbols, diagnostics and call hierarchies."""

__version__ = "0.1.2"