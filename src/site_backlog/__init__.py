"""Site Backlog - turn website audit evidence into a ranked, trackable issue backlog."""

__version__ = "0.1.0"
