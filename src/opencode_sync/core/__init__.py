"""Core sync engine for opencode-sync."""
