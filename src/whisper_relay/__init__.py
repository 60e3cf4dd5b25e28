"""Whisper Relay: signaling relay, offline mailboxes and prekey bundle exchange."""

__version__ = "1.0.0"
