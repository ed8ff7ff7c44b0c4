from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from models.blog import BlogCategory


class PostCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    content: str = Field(min_length=10)
    category: BlogCategory = BlogCategory.OTHER
    tags: List[str] = []
    image_urls: List[str] = []

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value):
        return BlogCategory.parse(value)


class PostUpdate(PostCreate):
    pass


class TagRead(BaseModel):
    id: int
    name: str


class LikeRead(BaseModel):
    user_id: str
    user_name: Optional[str] = None
    created_at: Optional[datetime] = None


class CommentRead(BaseModel):
    id: int
    post_id: int
    content: str
    created_at: Optional[datetime] = None
    user_id: str
    user_name: Optional[str] = None
    like_count: int = 0
    likes: List[LikeRead] = []
    parent_comment_id: Optional[int] = None
    replies: List["CommentRead"] = []


CommentRead.model_rebuild()


class PostRead(BaseModel):
    id: int
    title: str
    content: str
    category: BlogCategory
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_id: str
    user_name: Optional[str] = None
    like_count: int = 0
    comment_count: int = 0
    tags: List[TagRead] = []
    image_urls: List[str] = []
    comments: List[CommentRead] = []


class PostPage(BaseModel):
    items: List[PostRead]
    total_count: int
    page_number: int
    page_size: int


class PostImagesResponse(BaseModel):
    post_id: int
    image_urls: List[str]


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=500)
    post_id: int
    parent_comment_id: Optional[int] = None


class CommentUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1, max_length=500)


class CommentPatchOperation(BaseModel):
    op: str
    path: str
    value: Optional[str] = None


class LikeToggleRequest(BaseModel):
    post_id: Optional[int] = None
    comment_id: Optional[int] = None


class LikeToggleResponse(BaseModel):
    liked: bool
    message: str
