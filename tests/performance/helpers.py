"""
Helper utilities for the onboarding stage scenarios.

Provides one function per wallet-API call used by the stages (signup,
signin, wallet creation, DID creation, DID retrieval) plus a decoder for
each response body.  Decoders are the explicit schema step: they return
the fields a later stage needs, or ``None`` when the body does not have
the expected shape, and the call helper then marks the request failed
through Locust's ``catch_response`` protocol.

Key Concepts Demonstrated:
- Reusable request helpers that wrap Locust's ``catch_response`` protocol
- Fail-closed response decoding instead of optional chaining into bodies
- Bounded per-request timeouts taken from configuration
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from config import get_config

if TYPE_CHECKING:
    from locust.clients import HttpSession

logger = logging.getLogger(__name__)

SETTINGS = get_config()

# Statuses that indicate the API itself is overwhelmed rather than
# rejecting the request.
OVERLOAD_STATUSES = {429, 502, 503, 504}


def _safe_json(response: Any) -> dict[str, Any]:
    """
    Return response JSON as dict, or an empty dict if parsing fails.

    Args:
        response: A Locust/requests ``Response`` object.

    Returns:
        The parsed JSON body as a dictionary, or ``{}`` if parsing fails
        or the top-level value is not a dict.
    """
    try:
        data = response.json()
    except ValueError:
        return {}

    if isinstance(data, dict):
        return data
    return {}


def _data_section(body: dict[str, Any]) -> dict[str, Any]:
    data = body.get("data")
    return data if isinstance(data, dict) else {}


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


# -----------------------------------------------------------------------------
# Response decoders
# -----------------------------------------------------------------------------

def decode_signup(body: dict[str, Any]) -> dict[str, Any] | None:
    """Extract ``userId`` from a signup response."""
    user_id = _data_section(body).get("userId")
    if user_id in (None, ""):
        return None
    return {"userId": user_id}


def decode_signin(body: dict[str, Any]) -> dict[str, Any] | None:
    """Extract the access and refresh tokens from a signin response."""
    data = _data_section(body)
    access_token = data.get("access_token")
    refresh_token = data.get("refresh_token")
    if not _non_empty_str(access_token) or not _non_empty_str(refresh_token):
        return None
    return {"accessToken": access_token, "refreshToken": refresh_token}


def decode_wallet(body: dict[str, Any]) -> dict[str, Any] | None:
    """Extract the wallet id and tenant id from a create-wallet response."""
    data = _data_section(body)
    wallet_id = data.get("id")
    tenant_id = data.get("tenantId")
    if wallet_id in (None, "") or tenant_id in (None, ""):
        return None
    return {"walletId": wallet_id, "tenantId": tenant_id}


def decode_did_create(body: dict[str, Any]) -> dict[str, Any] | None:
    """
    Extract the DID from a DID-creation response.

    The DID must be a ``did:key:`` identifier and the response must
    carry a DID document.
    """
    data = _data_section(body)
    did = data.get("did")
    if not _non_empty_str(did) or not did.startswith("did:key:"):
        return None
    if not data.get("didDocument"):
        return None
    return {"did": did}


def decode_did_get(body: dict[str, Any], expected_did: str | None = None) -> dict[str, Any] | None:
    """
    Extract ``hashTenantID`` from a DID-retrieval response.

    Args:
        body: Parsed response body.
        expected_did: When given, the retrieved DID must equal it.
    """
    data = _data_section(body)
    did = data.get("did")
    hash_tenant_id = data.get("hashTenantID")
    if not _non_empty_str(did) or hash_tenant_id in (None, ""):
        return None
    if expected_did is not None and did != expected_did:
        return None
    return {"hashTenantID": hash_tenant_id}


# -----------------------------------------------------------------------------
# Request helpers
# -----------------------------------------------------------------------------

def auth_header(token: str) -> dict[str, str]:
    """
    Build bearer auth headers for wallet-API requests.

    Args:
        token: The service bearer token or a user access token.

    Returns:
        A dictionary suitable for passing as ``headers`` to Locust
        request methods.
    """
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "*/*",
    }


def api_path(path: str) -> str:
    """Prefix *path* with the configured wallet-API prefix."""
    return f"{SETTINGS.API_PREFIX.rstrip('/')}{path}"


def _verify(
    response: Any,
    expected_status: int,
    decoder: Callable[[dict[str, Any]], dict[str, Any] | None],
    missing_message: str,
) -> dict[str, Any] | None:
    """Apply status and body checks to a ``catch_response`` response."""
    if response.status_code in OVERLOAD_STATUSES:
        logger.warning("Wallet API overloaded: %s on %s", response.status_code, response.url)

    if response.status_code != expected_status:
        response.failure(f"Expected {expected_status}, got {response.status_code}")
        return None

    fields = decoder(_safe_json(response))
    if fields is None:
        response.failure(missing_message)
        return None

    response.success()
    return fields


def signup_user(
    client: HttpSession,
    *,
    username: str,
    first_name: str,
    last_name: str,
    password: str,
) -> dict[str, Any] | None:
    """
    Sign up a new user with the service bearer token.

    Returns:
        ``{"userId": ...}`` on a ``201`` with a user id, else ``None``.
    """
    with client.post(
        api_path("/user/username/signup"),
        json={
            "username": username,
            "firstName": first_name,
            "lastName": last_name,
            "password": password,
        },
        headers=auth_header(SETTINGS.BEARER_TOKEN),
        name="/user/username/signup [POST]",
        timeout=SETTINGS.WALLET_API_TIMEOUT,
        catch_response=True,
    ) as response:
        return _verify(response, 201, decode_signup, "Signup response missing userId")


def signin_user(client: HttpSession, *, username: str, password: str) -> dict[str, Any] | None:
    """
    Sign in and return the user's tokens.

    Returns:
        ``{"accessToken", "refreshToken"}`` on success, else ``None``.
    """
    with client.post(
        api_path("/user/username/signin"),
        json={"username": username, "password": password},
        headers=auth_header(SETTINGS.BEARER_TOKEN),
        name="/user/username/signin [POST]",
        timeout=SETTINGS.WALLET_API_TIMEOUT,
        catch_response=True,
    ) as response:
        return _verify(response, 201, decode_signin, "Signin response missing tokens")


def create_wallet(client: HttpSession, *, access_token: str, label: str) -> dict[str, Any] | None:
    """
    Create a wallet for the signed-in user.

    Returns:
        ``{"walletId", "tenantId"}`` on success, else ``None``.
    """
    with client.post(
        api_path("/create-wallet"),
        json={"label": label, "connectionImageUrl": "https://picsum.photos/200"},
        headers=auth_header(access_token),
        name="/create-wallet [POST]",
        timeout=SETTINGS.WALLET_API_TIMEOUT,
        catch_response=True,
    ) as response:
        return _verify(response, 201, decode_wallet, "Wallet response missing id or tenantId")


def create_did(client: HttpSession, *, access_token: str) -> dict[str, Any] | None:
    """
    Create a ``did:key`` DID for the user's wallet.

    Returns:
        ``{"did": ...}`` on success, else ``None``.
    """
    with client.post(
        api_path("/did"),
        json={},
        headers=auth_header(access_token),
        name="/did [POST]",
        timeout=SETTINGS.WALLET_API_TIMEOUT,
        catch_response=True,
    ) as response:
        return _verify(response, 201, decode_did_create, "DID response missing did:key DID or document")


def get_did(client: HttpSession, *, access_token: str, expected_did: str | None = None) -> dict[str, Any] | None:
    """
    Retrieve the wallet DID and check it matches the one created.

    Returns:
        ``{"hashTenantID": ...}`` on success, else ``None``.
    """
    with client.get(
        api_path("/did"),
        headers=auth_header(access_token),
        name="/did [GET]",
        timeout=SETTINGS.WALLET_API_TIMEOUT,
        catch_response=True,
    ) as response:
        return _verify(
            response,
            200,
            lambda body: decode_did_get(body, expected_did),
            "DID retrieval missing hashTenantID or DID mismatch",
        )
