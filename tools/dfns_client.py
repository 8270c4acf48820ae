"""Minimal DFNS API client: bearer auth, user-action signing, transaction broadcast.

DFNS requires every state-changing request to carry a user-action token. The
token is obtained by asking for a challenge, signing it with the service
account's credential key, and exchanging the signed challenge:

    POST /auth/action/init  →  challenge
    sign clientData(challenge) with the credential private key
    POST /auth/action       →  userAction token
    POST <target> with header x-dfns-useraction: <token>

HTTP errors are surfaced as RuntimeError; transport failures on the challenge
requests are retried, the broadcast itself never is.
"""

from __future__ import annotations

import base64
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

import httpx
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class CredentialSigner:
    """Signs DFNS challenges with an asymmetric credential key (EC, Ed25519 or RSA)."""

    def __init__(self, cred_id: str, private_key_pem: str, app_origin: str):
        self.cred_id = cred_id
        self._app_origin = app_origin
        pem = private_key_pem.replace("\\n", "\n").encode()
        self._key = serialization.load_pem_private_key(pem, password=None)

    def _sign(self, data: bytes) -> bytes:
        key = self._key
        if isinstance(key, ed25519.Ed25519PrivateKey):
            return key.sign(data)
        if isinstance(key, ec.EllipticCurvePrivateKey):
            return key.sign(data, ec.ECDSA(hashes.SHA256()))
        if isinstance(key, rsa.RSAPrivateKey):
            return key.sign(data, padding.PKCS1v15(), hashes.SHA256())
        raise ValueError(f"unsupported DFNS credential key type: {type(key).__name__}")

    def sign(self, challenge: str) -> Dict[str, Any]:
        client_data = json.dumps(
            {
                "type": "key.get",
                "challenge": challenge,
                "origin": self._app_origin,
                "crossOrigin": False,
            },
            separators=(",", ":"),
        ).encode()
        return {
            "kind": "Key",
            "credentialAssertion": {
                "credId": self.cred_id,
                "clientData": _b64url(client_data),
                "signature": _b64url(self._sign(client_data)),
            },
        }


class DfnsClient:
    def __init__(
        self,
        org_id: str,
        auth_token: str,
        signer: CredentialSigner,
        *,
        base_url: str = "https://api.dfns.io",
        transport: httpx.BaseTransport | None = None,
        timeout: float = 20.0,
    ) -> None:
        self._org_id = org_id
        self._signer = signer
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"authorization": f"Bearer {auth_token}"},
            transport=transport,
            timeout=timeout,
        )

    def close(self) -> None:
        self._http.close()

    # ── request plumbing ──────────────────────────────────────────

    @staticmethod
    def _nonce() -> str:
        payload = {
            "uuid": str(uuid.uuid4()),
            "datetime": datetime.now(timezone.utc).isoformat(),
        }
        return _b64url(json.dumps(payload).encode())

    def _request(
        self,
        method: str,
        path: str,
        body: Dict[str, Any] | None = None,
        user_action: str | None = None,
    ) -> Dict[str, Any]:
        headers = {"x-dfns-nonce": self._nonce()}
        if user_action:
            headers["x-dfns-useraction"] = user_action
        content = json.dumps(body) if body is not None else None
        if content is not None:
            headers["content-type"] = "application/json"
        resp = self._http.request(method, path, content=content, headers=headers)
        if resp.status_code >= 400:
            raise RuntimeError(f"DFNS {method} {path} error {resp.status_code}: {resp.text}")
        return resp.json() if resp.content else {}

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _init_action(self, method: str, path: str, payload: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/auth/action/init",
            {
                "userActionPayload": payload,
                "userActionHttpMethod": method,
                "userActionHttpPath": path,
                "userActionServerKind": "Api",
            },
        )

    def sign_user_action(self, method: str, path: str, body: Dict[str, Any]) -> str:
        """Run the challenge flow for (*method*, *path*, *body*) and return the token."""
        challenge = self._init_action(method, path, json.dumps(body))
        if "challenge" not in challenge or "challengeIdentifier" not in challenge:
            raise RuntimeError(f"DFNS action init returned no challenge: {challenge}")
        assertion = self._signer.sign(challenge["challenge"])
        result = self._request(
            "POST",
            "/auth/action",
            {
                "challengeIdentifier": challenge["challengeIdentifier"],
                "firstFactor": assertion,
            },
        )
        token = result.get("userAction")
        if not token:
            raise RuntimeError(f"DFNS action signing returned no userAction: {result}")
        return token

    # ── wallets ───────────────────────────────────────────────────

    def broadcast_transaction(self, wallet_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Broadcast *body* from *wallet_id*; returns DFNS's transaction request record."""
        path = f"/wallets/{wallet_id}/transactions"
        token = self.sign_user_action("POST", path, body)
        logger.info("DFNS: broadcasting %s from wallet %s (org %s)", body.get("kind"), wallet_id, self._org_id)
        return self._request("POST", path, body, user_action=token)
