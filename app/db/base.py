# /app/db/base.py

# Central registry for all SQLAlchemy models. Importing them here ensures the
# Base metadata knows about every table for create_all and Alembic.

from .base_class import Base

from .models.user_models import User
from .models.book_models import Book, BookAIContent
from .models.circulation_models import Transaction, BookRequest, ExtensionRequest
from .models.notification_models import Notification
from .models.chat_models import ChatSession, ChatMessage
from .models.ai_models import AIPrediction, AIAnalytics
