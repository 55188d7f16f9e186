"""GoLens: structural interface-satisfaction analysis for Go source trees."""

__version__ = "0.1.0"
