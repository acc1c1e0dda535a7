"""
Shared infrastructure for the chat relay: configuration, logging and
the narrow interfaces to external collaborators.
"""
