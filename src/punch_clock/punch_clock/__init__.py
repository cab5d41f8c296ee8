"""Punch Clock package.

Feature modules (punches, hours, adjustments, client, ...) with a thin Flask
controller layer on top of service/repository layers.
"""

__version__ = "0.1.0"
