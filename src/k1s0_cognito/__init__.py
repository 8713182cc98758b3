"""k1s0 cognito token verification library."""

from .client import CognitoVerifier, new_cognito_verifier
from .config import CognitoSettings, load_settings
from .exceptions import (
    AuthError,
    AuthErrorCodes,
    Claim,
    ClaimError,
    ConfigError,
    FetchError,
    HeaderFormatError,
    KeyMaterialError,
    SignatureInvalidError,
    SignatureMethodError,
    StructuralError,
    UnknownKeyError,
)
from .jwks import HttpJwksFetcher, JwksFetcher, KeySetResolver
from .keys import build_key_material
from .logger import configure_logging
from .middleware import (
    AuthenticatedIdentity,
    BearerAuthenticator,
    forbidden_response,
    get_identity,
    reset_identity,
    set_identity,
    token_from_auth_header,
)
from .models import (
    Claims,
    JsonWebKey,
    KeyFamily,
    KeySet,
    ParsedToken,
    PublicKeyMaterial,
    RsaPublicKeyMaterial,
    VerifierConfig,
)
from .verifier import TokenVerifier

__all__ = [
    "CognitoVerifier",
    "new_cognito_verifier",
    "CognitoSettings",
    "load_settings",
    "TokenVerifier",
    "KeySetResolver",
    "JwksFetcher",
    "HttpJwksFetcher",
    "build_key_material",
    "JsonWebKey",
    "KeyFamily",
    "PublicKeyMaterial",
    "RsaPublicKeyMaterial",
    "KeySet",
    "VerifierConfig",
    "Claims",
    "ParsedToken",
    "BearerAuthenticator",
    "AuthenticatedIdentity",
    "token_from_auth_header",
    "forbidden_response",
    "set_identity",
    "get_identity",
    "reset_identity",
    "configure_logging",
    "AuthError",
    "AuthErrorCodes",
    "ConfigError",
    "FetchError",
    "KeyMaterialError",
    "StructuralError",
    "SignatureMethodError",
    "UnknownKeyError",
    "SignatureInvalidError",
    "Claim",
    "ClaimError",
    "HeaderFormatError",
]
