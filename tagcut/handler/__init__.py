"""The built-in release handler.

Runs in its own process behind the execution gateway: one JSON request on
stdin, one JSON response on stdout, diagnostics on stderr.

    python -m tagcut.handler < request.json
"""
