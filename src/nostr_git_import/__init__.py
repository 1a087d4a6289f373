"""Import Git hosting provider history into a signed Nostr event log."""

__version__ = "0.1.0"
