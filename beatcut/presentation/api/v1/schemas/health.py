from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    version: str
    candidate_provider: str
    beat_strategy: str
    smart_pick: bool
    smart_query: bool
