from dataclasses import dataclass, field


class NotAuthenticated(Exception):
    pass


@dataclass
class SessionContext:
    """Dashboard login state, loaded on login and cleared on logout."""

    token: str | None = None
    organization: dict = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def organization_id(self) -> str | None:
        return self.organization.get("id")

    def load(self, token: str, organization: dict) -> None:
        self.token = token
        self.organization = dict(organization or {})

    def clear(self) -> None:
        self.token = None
        self.organization = {}

    def auth_headers(self) -> dict[str, str]:
        if not self.token:
            raise NotAuthenticated("Login required")
        return {"Authorization": f"Bearer {self.token}"}
