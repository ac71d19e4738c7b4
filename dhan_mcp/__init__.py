"""Dhan MCP server.

Exposes Dhan broker account queries and (optionally) order placement as
Model Context Protocol tools over a Content-Length framed stdio stream.
"""

__version__ = "1.1.0"
