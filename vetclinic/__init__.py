"""Acme Veterinary Hospital record registry.

Doctors and pets with referential integrity between them, persisted to a flat
text file.
"""

__version__ = "1.0.0"
