"""Rate limiting adapters.

This package provides a small abstraction layer so the site can start with an
in-process token bucket store and later move to a shared store without
changing the HTTP layer.
"""
