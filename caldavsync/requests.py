from requests.auth import AuthBase


class HTTPBearerAuth(AuthBase):
    """Sends an OAuth access token as ``Authorization: Bearer <token>``"""

    def __init__(self, token: str) -> None:
        self.token = token

    def __eq__(self, other: object) -> bool:
        return self.token == getattr(other, "token", None)

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __call__(self, r):
        r.headers["Authorization"] = f"Bearer {self.token}"
        return r
