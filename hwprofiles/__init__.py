"""Hardware profile configuration store.

This package persists global settings and user-defined hardware profiles
to disk, and reconciles identifier conflicts when a previously exported
profile collection is imported again.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
