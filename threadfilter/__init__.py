"""threadfilter — pull one person's conversations out of a chat-history export."""

__version__ = "0.1.0"
