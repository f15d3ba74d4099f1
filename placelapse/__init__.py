"""
placelapse

Time-lapse reconstruction of a collaborative pixel canvas from its placement log.
"""

__version__ = "0.1.0"
