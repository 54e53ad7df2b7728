"""Farm boundary polygon subsystem.

Represents, validates, edits and measures the geographic boundaries of
farms collected in the field, and derives the plain-data render set a map
presentation layer draws from.
"""

__version__ = "0.1.0"
