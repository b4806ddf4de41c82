"""Identity of the caller, as asserted by the upstream auth proxy."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Customer:
    id: str
    name: str = ""
    email: str = ""
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
