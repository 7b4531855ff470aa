from vidtube.schemas.common import CamelModel
from vidtube.schemas.user import UserOut


class LoginIn(CamelModel):
    username: str | None = None
    email: str | None = None
    password: str = ""


class RefreshIn(CamelModel):
    refresh_token: str | None = None


class ChangePasswordIn(CamelModel):
    old_password: str = ""
    new_password: str = ""


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class LoginOut(TokenPair):
    user: UserOut
