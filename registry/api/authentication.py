from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from registry.exceptions import AuthenticationError
from registry.models import Account
from registry.tokens import decode_token


class BearerTokenAuthentication(BaseAuthentication):
    """
    Authenticate ``Authorization: Bearer <token>`` headers.

    ``request.user`` becomes the Account named by the token's ``userId`` claim
    and ``request.auth`` holds the decoded claims.
    """

    keyword = b"bearer"

    def authenticate(self, request):
        parts = get_authorization_header(request).split()
        if not parts or parts[0].lower() != self.keyword:
            return None
        if len(parts) != 2:
            raise exceptions.AuthenticationFailed("Invalid token header")

        try:
            claims = decode_token(parts[1].decode("utf-8"))
        except (AuthenticationError, UnicodeError) as e:
            raise exceptions.AuthenticationFailed("Invalid token") from e

        account = Account.objects.filter(pk=claims["userId"]).first()
        if account is None:
            raise exceptions.AuthenticationFailed("Account no longer exists")
        return account, claims

    def authenticate_header(self, request):
        return 'Bearer realm="api"'
