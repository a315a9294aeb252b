"""TeleWindy sync HTTP API."""
