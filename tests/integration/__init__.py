"""Integration tests for shellgate.

These tests wire the real guard, proxy, registry and local executor together
and spawn local shell commands. No SSH host is needed.

Run them with:
    pytest -m integration
"""
