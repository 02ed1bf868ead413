"""Controllers of the sample application.

Handler bodies raise on purpose: the generator must never call them.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .forms import (
    ContactRequest,
    CreateUserRequest,
    ExplodingRequest,
    PlainRulesRequest,
    ProfileRequest,
    ScopedRequest,
    SearchUsersRequest,
)


class User(BaseModel):
    id: int
    email: str
    name: Optional[str] = None


class UserCreatedPayload(BaseModel):
    user: User
    occurred_at: str


class UserController:
    def index(self, request: SearchUsersRequest) -> list[User]:
        """List users.

        Results are ordered by creation date.
        """
        raise NotImplementedError

    def store(self, request: CreateUserRequest) -> User:
        """Create a user.

        @status 201
        """
        raise NotImplementedError

    def show(self, user_id: int) -> User:
        """Show one user.

        @param user_id Identifier of the user.
        """
        raise NotImplementedError

    def destroy(self, user_id: int) -> None:
        """Delete a user.

        @deprecated Use the archive endpoint instead.
        """
        raise NotImplementedError

    def legacy(self) -> dict[str, str]:
        """Old listing.

        .. deprecated:: 2.0
        """
        raise NotImplementedError


class ProfileController:
    def update(self, profile: ProfileRequest, contact: ContactRequest) -> None:
        raise NotImplementedError


class TokenController:
    def issue(self, request: PlainRulesRequest) -> Optional[str]:
        raise NotImplementedError


class TenantController:
    def index(self, tenant: str) -> list[str]:
        raise NotImplementedError

    def store(self, tenant: str) -> None:
        raise NotImplementedError


class BrokenController:
    def crash(self, request: ExplodingRequest) -> None:
        raise NotImplementedError


class FocusController:
    def focus(self) -> None:
        """Endpoint under development.

        @only-docs
        """
        raise NotImplementedError


class DocsController:
    def show(self) -> str:
        raise NotImplementedError


class WebhookController:
    def user_created(self, payload: UserCreatedPayload) -> None:
        """Sent after a user signs up."""
        raise NotImplementedError


class ScopedController:
    def update(self, request: ScopedRequest) -> None:
        raise NotImplementedError
