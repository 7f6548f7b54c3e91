"""Resolved caller identities.

An identity is built once per request by the resolvers in
app.core.auth_resolvers and passed explicitly to every verifier and
repository call after that. It is never persisted and never re-derived
from cookies or headers further down the call chain.
"""

from dataclasses import dataclass
from typing import ClassVar, Literal

StaffRole = Literal["admin", "staff", "accountant"]


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """A staff user acting within their company.

    Attributes:
        user_id: Staff user primary key.
        company_id: Company the user belongs to (the tenant scope).
        role: Company-level role; ``admin`` bypasses project membership.
    """

    user_id: int
    company_id: int
    role: StaffRole

    kind: ClassVar[Literal["user"]] = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True, slots=True)
class ClientIdentity:
    """A portal client, scoped to the projects and documents linked to it."""

    client_id: int

    kind: ClassVar[Literal["client"]] = "client"


Identity = UserIdentity | ClientIdentity
