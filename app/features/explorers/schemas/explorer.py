from datetime import datetime

from app.features.explorers.models.explorer import ExplorerStatus
from app.platform.schemas import CamelModel


class ExplorerResponse(CamelModel):
    id: str
    follower_id: str
    following_id: str
    status: ExplorerStatus
    created_at: datetime
