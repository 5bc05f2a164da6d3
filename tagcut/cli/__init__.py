"""Caller-side command line interface (``tagcut``)."""
