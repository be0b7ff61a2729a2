"""Runtime support for serving forja handlers."""
