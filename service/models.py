# Copyright (c) 2024 Vanderbilt University
# Authors: Jules White, Allen Karns, Karely Rodriguez, Max Moundas

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Stable error identifiers a client may branch on."""

    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    PERMISSION_DENIED = "permission-denied"
    NOT_FOUND = "not-found"
    INTERNAL = "internal"


class InvocationContext(BaseModel):
    """The verified caller of an invocation, built by the transport layer."""

    caller_id: Optional[str] = None


class DeletionRequest(BaseModel):
    target_id: Optional[str] = None


class Profile(BaseModel):
    account_id: str
    is_admin: bool = False


class DeletionSuccess(BaseModel):
    success: Literal[True] = True
    message: str
    # kept off the wire, which carries only success and message
    target_id: str = Field(exclude=True)
    deleted_by: str = Field(exclude=True)


class DeletionFailure(BaseModel):
    success: Literal[False] = False
    kind: FailureKind
    message: str


DeletionOutcome = Union[DeletionSuccess, DeletionFailure]
