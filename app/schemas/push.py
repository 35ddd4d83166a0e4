from pydantic import BaseModel

class SubscriptionRequest(BaseModel):
    endpoint: str
    keys: dict[str, str]
    expirationTime: float | None = None

class SubscriptionResponse(BaseModel):
    status: str
