"""Record types shared by the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from slim_orm.mapping.descriptor import column


@dataclass
class User:
    id: int = column("id", default=0)
    name: str = column("name", default="")
    email: str | None = column("email", default=None)


@dataclass
class Account:
    id: int | None = column("id", default=None)
    owner: str = column("owner", default="")
    balance: float = column("balance", default=0.0)
    active: bool = column("active", default=True)
    opened_at: datetime | None = column("opened_at", default=None)
    notes: list[str] = field(default_factory=list)  # not mapped


@dataclass
class Required:
    id: int = column("id")
    name: str = column("name")
    nickname: str | None = column("nickname")


@dataclass(frozen=True)
class FrozenUser:
    id: int = column("id", default=0)


class UserModel(BaseModel):
    id: int = Field(default=0, json_schema_extra={"column": "id"})
    name: str = Field(json_schema_extra={"column": "name"})
    email: str | None = Field(default=None, json_schema_extra={"column": "email"})
    scratch: str = ""


class StrictUserModel(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: int = Field(default=0, ge=0, json_schema_extra={"column": "id"})
    name: str = Field(default="", json_schema_extra={"column": "name"})


class LegacyUser:
    id: int
    login: str
    display: str | None

    def __init__(self, id: int = 0, login: str = "", display: str | None = None) -> None:
        self.id = id
        self.login = login
        self.display = display
