"""
TeleWindy Sync Core Package.

Storage and configuration for the backup server. HTTP concerns live in `api`.
"""
