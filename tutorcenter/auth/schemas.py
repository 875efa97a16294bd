from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Staff member resolved from the access token. Recorded as the actor on writes."""

    id: UUID
    role: str
    name: Optional[str] = None

    @property
    def actor(self) -> str:
        return self.name or str(self.id)
