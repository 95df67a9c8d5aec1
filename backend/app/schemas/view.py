from pydantic import BaseModel


class ViewTracked(BaseModel):
    vendor_id: int
    recorded: bool


class ViewStats(BaseModel):
    vendor_id: int
    total_views: int
    unique_views: int
    # Views in the last 7 days
    recent_views: int
