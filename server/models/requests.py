from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str
    limit: int = Field(default=3, ge=1, le=50)


class MessageRequest(BaseModel):
    question: str = Field(min_length=1)


class RenameThreadRequest(BaseModel):
    name: str = Field(min_length=1)
