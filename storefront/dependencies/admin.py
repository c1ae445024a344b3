from typing import Optional

from fastapi import Cookie, Depends
from fastapi.security import OAuth2PasswordBearer

from storefront.errors import AuthenticationError
from storefront.utils.token import is_admin_token

ADMIN_COOKIE = "admin_token"

admin_bearer = OAuth2PasswordBearer(tokenUrl="/admin/login", auto_error=False)


def require_admin(
    admin_token: Optional[str] = Cookie(default=None),
    bearer: Optional[str] = Depends(admin_bearer),
):
    if not (is_admin_token(admin_token) or is_admin_token(bearer)):
        raise AuthenticationError("Unauthorized")
    return True
