"""Voice-driven web page reader: extract, summarize and speak the page in front of you."""

__version__ = "0.1.0"
