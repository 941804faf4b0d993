from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed, TokenError
from rest_framework_simplejwt.tokens import AccessToken
import jwt

from .models import BlacklistedAccessToken


def read_token_type(raw_token):
    """Peek at the token_type claim without verifying the signature."""
    if isinstance(raw_token, bytes):
        raw_token = raw_token.decode()
    try:
        decoded = jwt.decode(raw_token, options={"verify_signature": False})
    except jwt.PyJWTError:
        raise AuthenticationFailed("Invalid token format.")
    return decoded.get("token_type")


class CustomJWTAuthentication(JWTAuthentication):
    """Bearer authentication for guild admins: access tokens only, minus the revoked ones."""

    def get_validated_token(self, raw_token):
        token_type = read_token_type(raw_token)
        if token_type != "access":
            raise AuthenticationFailed("Unsupported token type")

        try:
            token = AccessToken(raw_token)
        except TokenError:
            raise AuthenticationFailed("Token is invalid or expired.")

        # Manual blacklist check for access tokens
        if BlacklistedAccessToken.is_revoked(token.get("jti")):
            raise AuthenticationFailed("Your token has been blacklisted.")

        return token
