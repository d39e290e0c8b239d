"""User data models."""

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Stored user record."""

    user_id: str = Field(..., description="Unique user identifier")
    name: str | None = Field(None, description="Display name")
    email: str | None = Field(None, description="User email address")
    is_admin: bool = Field(default=False, description="Administrator capability")
    account_activated: bool = Field(
        default=False, description="Whether the invitation has been accepted"
    )
    is_active: bool = Field(default=True, description="Cleared on deactivation")
    search_name: str | None = Field(
        None, description="Normalized name used for prefix search"
    )
    # Partition key of the search GSI, present only while search_name is set
    search_bucket: str | None = None
    created_at: str = Field(..., description="ISO timestamp when user was created")
    updated_at: str | None = Field(None, description="ISO timestamp of last edit")


class UserSummary(BaseModel):
    """Directory search result."""

    user_id: str
    name: str | None = None


class UserCreateRequest(BaseModel):
    """Request body for an admin creating a user."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    is_admin: bool = False


class UserUpdateRequest(BaseModel):
    """Request body for an admin editing a user's name or role."""

    name: str = Field(..., min_length=1, max_length=100)
    is_admin: bool

    model_config = ConfigDict(extra="forbid")
