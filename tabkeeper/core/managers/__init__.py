"""Data access managers for the workspace core.

Managers encapsulate load/transform/save over the stored collection and
raise domain exceptions (``ValueError`` subclasses), never
CLI errors -- that translation is the front end's responsibility.
"""

from tabkeeper.core.managers.contexts import ContextRepository, InvalidContextNameError

__all__ = [
    "ContextRepository",
    "InvalidContextNameError",
]
