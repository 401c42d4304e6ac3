"""
Staging Status Page: a test/demo-mode stand-in for a live status page.

Persists components, incidents and templates in a local JSON document,
keeps component statuses in line with the open incidents, and cleans up
items created against the live page while demo mode is on.
"""

__version__ = "1.0.0"
