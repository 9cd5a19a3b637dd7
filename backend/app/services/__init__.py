"""Application service helpers."""

from . import relationships
from . import notifications
from . import follow
from . import users
from . import messages

__all__ = ["relationships", "notifications", "follow", "users", "messages"]
