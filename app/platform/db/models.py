# Import every model so Base.metadata is complete for Alembic and create_all.
from app.features.auth.models import PendingUser, User, VerificationSession, VerificationToken  # noqa: F401
from app.features.explorers.models.explorer import Explorer  # noqa: F401
from app.features.notifications.models.notifications import Notification  # noqa: F401
from app.features.posts.models.post import Comment, Like, Post, Save  # noqa: F401
from app.features.stories.models.story import Story, StoryView  # noqa: F401
from app.platform.db.base import Base

metadata = Base.metadata
