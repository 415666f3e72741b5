"""
Walks through the whole wallet sign-in flow against a running server,
signing the challenge with a local key instead of a browser wallet.

    uvicorn wallet_auth.main:app
    DEMO_PRIVATE_KEY=0x... python scripts/sign_in_demo.py
"""
import os
import sys

import httpx
from eth_account import Account
from eth_account.messages import encode_defunct

# Add project root to path
sys.path.append(os.getcwd())

from wallet_auth.core.config import settings
from wallet_auth.services.siwe import build_challenge_message

BASE_URL = os.environ.get("AUTH_BASE_URL", "http://localhost:8000/api/v1")


def main():
    key = os.environ.get("DEMO_PRIVATE_KEY")
    acct = Account.from_key(key) if key else Account.create()
    print("Signing in as", acct.address)

    with httpx.Client(base_url=BASE_URL, timeout=30) as client:
        nonce = client.post("/auth/nonce").json()["nonce"]
        print("nonce =", nonce)

        message = build_challenge_message(
            acct.address,
            nonce,
            domain=settings.app_domain,
            uri=settings.app_origin,
            chain_id=settings.chain_id,
            statement="Sign in to the Split Payment demo",
        )
        signed = acct.sign_message(encode_defunct(text=message))

        resp = client.post(
            "/auth/verify",
            json={
                "address": acct.address,
                "message": message,
                "signature": "0x" + signed.signature.hex().removeprefix("0x"),
            },
        )
        print("verify ->", resp.status_code, resp.json())
        if resp.status_code != 200:
            return
        token = resp.json()["sessionToken"]

        print("check ->", client.get("/auth/verify", params={"token": token}).json())
        print("sign out ->", client.request("DELETE", "/auth/verify", json={"token": token}).json())
        print("check again ->", client.get("/auth/verify", params={"token": token}).status_code)


if __name__ == "__main__":
    main()
