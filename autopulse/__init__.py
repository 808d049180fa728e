"""autopulse - keeps media servers in sync with files arriving on disk."""

__version__ = "0.1.0"
