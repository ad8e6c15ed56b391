"""scenario-engine -- rule-driven situation engine for interactive fiction."""

__version__ = "0.1.0"
