"""Portal domain schemas - Requests members send from the self-service app"""

from typing import Optional

from pydantic import BaseModel, Field


class PortalFreeDrinkClaim(BaseModel):
    client_ticket_id: int
    product_id: int


class PortalEventRegistration(BaseModel):
    special_requests: Optional[str] = Field(None, max_length=1000)
