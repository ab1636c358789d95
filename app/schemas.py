from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case input; serialises as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Auth ---

class SignupRequest(CamelModel):
    email: EmailStr = Field(max_length=255)
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=128)


class LoginRequest(CamelModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str


# --- User ---

class UserUpdate(CamelModel):
    email: EmailStr | None = Field(None, max_length=255)
    username: str | None = Field(None, min_length=1, max_length=100)
    bio: str | None = None
    image: str | None = Field(None, max_length=500)
    current_password: str | None = None
    new_password: str | None = Field(None, min_length=1, max_length=128)


# --- Article ---

class ArticleCreate(CamelModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field(min_length=1, max_length=1000)
    body: str = Field(min_length=1)
    tag_list: list[str] = []


class ArticleUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = Field(None, min_length=1, max_length=1000)
    body: str | None = Field(None, min_length=1)
    tag_list: list[str] | None = None


# --- Comment ---

class CommentCreate(CamelModel):
    body: str = Field(min_length=1, max_length=1000)


# --- Pagination ---

class PaginationMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class PaginatedResponse(CamelModel):
    data: list[dict]
    meta: PaginationMeta
    message: str
