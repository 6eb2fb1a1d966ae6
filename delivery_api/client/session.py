from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class Session:
    """
    A logged-in user as seen by the client: bearer token plus profile.

    Sessions are immutable values handed to each authenticated call;
    logging out is simply dropping the object.
    """
    token: str
    user: Dict[str, Any] = field(default_factory=dict)

    @property
    def role(self) -> str:
        return self.user.get("role", "")

    @property
    def email(self) -> str:
        return self.user.get("email", "")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
