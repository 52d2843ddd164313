from pydantic import BaseModel, Field, field_validator


class AppRegistration(BaseModel):
    client_id: str
    client_secret: str
    id: str | None = None
    name: str | None = None
    website: str | None = None
    redirect_uri: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    scope: str | None = None
    created_at: int | None = None


class PendingRegistration(BaseModel):
    server_base_url: str
    client_id: str
    client_secret: str
    redirect_uri: str
    requested_scopes: frozenset[str]
    authorization_url: str


class Credential(BaseModel):
    server_base_url: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    granted_scopes: set[str] = Field(min_length=1)

    @field_validator("server_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
