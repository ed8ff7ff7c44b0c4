from pydantic import BaseModel, Field

class ProfileSetRequest(BaseModel):
    user_name: str = Field(min_length=1, max_length=64)

class ProfileResponse(BaseModel):
    user_id: str
    user_name: str
