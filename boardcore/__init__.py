"""Interactive core of a turn-based board game client.

Grid geometry, square selection and the cross-thread decision handshake.
"""
