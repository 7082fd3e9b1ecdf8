"""Packaged icon and sound files."""
