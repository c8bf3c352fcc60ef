"""
Cognito authentication for FastAPI.

Validates JWT tokens from AWS Cognito and provides the current user. Also
exposes email/password sign-in and sign-out through the Cognito API, and a
static admin token for single-admin deployments without a user pool.
"""
import logging
import secrets
from typing import Optional

import boto3
import httpx
from botocore.exceptions import ClientError
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError
from pydantic import BaseModel, Field

from app.config import get_settings
from app.services.errors import StoreError, UnauthorizedError

logger = logging.getLogger(__name__)
settings = get_settings()

# Security scheme for Swagger UI
security = HTTPBearer(auto_error=False)

router = APIRouter(tags=["Auth"])


class TokenPayload(BaseModel):
    """Decoded JWT token payload from Cognito."""
    sub: str  # Cognito user ID
    email: str
    name: Optional[str] = None
    token_use: str  # "id" or "access"
    exp: int


class AuthenticatedUser(BaseModel):
    """The caller as vouched for by the auth provider."""
    sub: str
    email: str
    name: Optional[str] = None


class CognitoJWKS:
    """
    Manages Cognito JSON Web Key Set for JWT verification.

    Fetches and caches the public keys from Cognito's JWKS endpoint.
    """

    def __init__(self):
        self._keys: Optional[dict] = None

    @property
    def jwks_url(self) -> str:
        """Get the JWKS URL for the configured Cognito User Pool."""
        return f"{self.issuer}/.well-known/jwks.json"

    @property
    def issuer(self) -> str:
        """Get the expected issuer for tokens."""
        region = settings.aws_region
        user_pool_id = settings.cognito_user_pool_id
        return f"https://cognito-idp.{region}.amazonaws.com/{user_pool_id}"

    async def get_keys(self) -> dict:
        """Fetch JWKS from Cognito (cached after first call)."""
        if self._keys is None:
            try:
                async with httpx.AsyncClient() as client:
                    response = await client.get(self.jwks_url, timeout=10.0)
                    response.raise_for_status()
                    jwks = response.json()
                    # Keyed by kid for lookup
                    self._keys = {key["kid"]: key for key in jwks["keys"]}
                    logger.info(f"Fetched {len(self._keys)} keys from Cognito JWKS")
            except httpx.HTTPError as e:
                logger.error(f"Failed to fetch Cognito JWKS: {e}")
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Authentication service unavailable",
                )
        return self._keys

    def clear_cache(self):
        """Clear cached keys (useful for key rotation)."""
        self._keys = None


# Global JWKS instance
_jwks = CognitoJWKS()


async def decode_token(
    token: str,
    jwks: Optional[CognitoJWKS] = None,
) -> TokenPayload:
    """
    Decode and verify a Cognito JWT token.

    Args:
        token: The JWT token string
        jwks: The JWKS manager

    Returns:
        TokenPayload with user information

    Raises:
        UnauthorizedError: If token is invalid, expired, or verification fails
    """
    if jwks is None:
        jwks = _jwks

    if not settings.cognito_user_pool_id or not settings.cognito_client_id:
        logger.warning("Cognito not configured, token authentication disabled")
        raise UnauthorizedError("Authentication not configured")

    try:
        unverified_header = jwt.get_unverified_header(token)
        kid = unverified_header.get("kid")

        if not kid:
            raise UnauthorizedError("Invalid token: missing key ID")

        keys = await jwks.get_keys()
        key = keys.get(kid)

        if not key:
            # Key not found - might be rotated, clear cache and retry once
            jwks.clear_cache()
            keys = await jwks.get_keys()
            key = keys.get(kid)

            if not key:
                raise UnauthorizedError("Invalid token: unknown key")

        payload = jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            audience=settings.cognito_client_id,
            issuer=jwks.issuer,
            options={
                "verify_exp": True,
                "verify_aud": True,
                "verify_iss": True,
            },
        )

        return TokenPayload(
            sub=payload["sub"],
            email=payload.get("email", ""),
            name=payload.get("name"),
            token_use=payload.get("token_use", "id"),
            exp=payload["exp"],
        )

    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise UnauthorizedError("Invalid token")


# =============================================================================
# Admin Token
# =============================================================================

ADMIN_USER_SUB = "portfolio-admin"
ADMIN_USER_EMAIL = "admin@localhost"
ADMIN_USER_NAME = "Admin"


def validate_admin_token(token: str) -> bool:
    """Check a bearer token against the configured static admin token."""
    if not settings.admin_token:
        return False
    return secrets.compare_digest(token, settings.admin_token)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthenticatedUser:
    """
    FastAPI dependency that returns the current authenticated user.

    Accepts the static admin token when configured, otherwise verifies a
    Cognito JWT. Mutating project endpoints depend on this, so a failed
    check rejects the request before any write happens.

    Usage:
        @app.get("/api/me")
        async def get_me(user: AuthenticatedUser = Depends(get_current_user)):
            return {"email": user.email}
    """
    if not credentials:
        raise UnauthorizedError("Unauthorized")

    token = credentials.credentials

    if validate_admin_token(token):
        return AuthenticatedUser(sub=ADMIN_USER_SUB, email=ADMIN_USER_EMAIL, name=ADMIN_USER_NAME)

    token_payload = await decode_token(token)
    return AuthenticatedUser(
        sub=token_payload.sub,
        email=token_payload.email,
        name=token_payload.name,
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthenticatedUser]:
    """
    Optional user dependency - returns None if not authenticated.
    """
    if not credentials:
        return None

    try:
        return await get_current_user(credentials)
    except UnauthorizedError:
        return None


# =============================================================================
# Sign-in / Sign-out (Cognito user pool API)
# =============================================================================


class LoginRequest(BaseModel):
    """Email/password sign-in request."""
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Tokens issued by Cognito on successful sign-in."""
    id_token: str
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int
    token_type: str = "Bearer"


class CognitoAuthClient:
    """Thin wrapper over the cognito-idp API for sign-in and sign-out."""

    def __init__(self):
        self._client = boto3.client(
            "cognito-idp",
            region_name=settings.aws_region,
        )

    async def sign_in_with_email(self, email: str, password: str) -> LoginResponse:
        """
        Authenticate with USER_PASSWORD_AUTH.

        Raises:
            UnauthorizedError: Wrong credentials or unknown user
            StoreError: Cognito call failed for another reason
        """
        if not settings.cognito_client_id:
            raise UnauthorizedError("Authentication not configured")

        try:
            response = self._client.initiate_auth(
                AuthFlow="USER_PASSWORD_AUTH",
                ClientId=settings.cognito_client_id,
                AuthParameters={"USERNAME": email, "PASSWORD": password},
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("NotAuthorizedException", "UserNotFoundException", "UserNotConfirmedException"):
                logger.warning(f"Sign-in rejected for {email}: {code}")
                raise UnauthorizedError("Invalid email or password")
            logger.error(f"Cognito sign-in failed: {e}")
            raise StoreError("Authentication provider error", cause=e) from e

        result = response.get("AuthenticationResult")
        if not result:
            # A challenge (e.g. NEW_PASSWORD_REQUIRED) must be completed elsewhere
            challenge = response.get("ChallengeName", "unknown")
            logger.warning(f"Sign-in for {email} requires challenge {challenge}")
            raise UnauthorizedError(f"Additional sign-in step required: {challenge}")

        logger.info(f"Signed in {email}")
        return LoginResponse(
            id_token=result["IdToken"],
            access_token=result["AccessToken"],
            refresh_token=result.get("RefreshToken"),
            expires_in=result.get("ExpiresIn", 3600),
        )

    async def sign_out(self, access_token: str) -> None:
        """Invalidate every token issued for the access token's user."""
        try:
            self._client.global_sign_out(AccessToken=access_token)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == "NotAuthorizedException":
                raise UnauthorizedError("Invalid token")
            logger.error(f"Cognito sign-out failed: {e}")
            raise StoreError("Authentication provider error", cause=e) from e


_cognito_client: Optional[CognitoAuthClient] = None


def get_cognito_client() -> CognitoAuthClient:
    """Get the Cognito client singleton."""
    global _cognito_client
    if _cognito_client is None:
        _cognito_client = CognitoAuthClient()
    return _cognito_client


@router.post("/api/auth/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    cognito: CognitoAuthClient = Depends(get_cognito_client),
) -> LoginResponse:
    """Sign in with email and password."""
    return await cognito.sign_in_with_email(credentials.email, credentials.password)


@router.post("/api/auth/logout")
async def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    cognito: CognitoAuthClient = Depends(get_cognito_client),
) -> dict:
    """Sign out the bearer of the access token."""
    if not credentials:
        raise UnauthorizedError("Unauthorized")

    # The static admin token has no provider session
    if not validate_admin_token(credentials.credentials):
        await cognito.sign_out(credentials.credentials)

    return {"success": True}


@router.get("/api/me")
async def get_me(user: AuthenticatedUser = Depends(get_current_user)) -> dict:
    """
    Get the current authenticated user's information.
    """
    return {
        "sub": user.sub,
        "email": user.email,
        "name": user.name,
    }
