from typing import Dict, Optional

from pydantic import BaseModel


class CurrentUser(BaseModel):
    id: int
    name: str = ""
    email: str = ""
    role: str = "user"


class AuthSession:
    """
    Logged-in user and API token for one client.
    Passed explicitly to the API client and the checkout flows.
    """

    def __init__(self, user: Optional[CurrentUser] = None, token: Optional[str] = None):
        self.user = user
        self.token = token

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.token)

    def login(self, user: CurrentUser, token: str) -> None:
        self.user = user
        self.token = token

    def logout(self) -> None:
        self.user = None
        self.token = None

    def headers(self) -> Dict[str, str]:
        return {"x-auth-token": self.token} if self.token else {}
