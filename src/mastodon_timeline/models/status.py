from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Account(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    username: str
    acct: str
    display_name: str = ""
    url: str | None = None


class Status(BaseModel):
    # Remote-defined fields beyond these are kept as-is
    model_config = ConfigDict(extra="allow")

    id: str
    uri: str
    url: str | None = None
    created_at: datetime | None = None
    content: str = ""
    account: Account | None = None
