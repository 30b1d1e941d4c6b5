"""
camprobe - WS-Discovery camera discovery server
"""

__version__ = "1.0.0"
