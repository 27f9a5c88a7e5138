"""SQLAlchemy models: re-export all."""

from models.user import User  # noqa: F401
from models.character import Character  # noqa: F401
from models.conversation import Conversation, Message  # noqa: F401
from models.rating import Rating  # noqa: F401
from models.payment import Payment  # noqa: F401
