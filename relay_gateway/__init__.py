"""
Chat relay WebSocket gateway.

Accepts client connections, acknowledges chat messages and fans them out
to every connected client.
"""

__version__ = "1.0.0"
