"""UNDO recovery coach API."""
