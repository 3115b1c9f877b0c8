#!/usr/bin/env python3
"""
One-time refresh token generation script.

This script exchanges a Zoho self-client grant code for the refresh token
the Apptics MCP server needs.

Usage:
    1. Create a Self Client in the Zoho API Console and note its
       client ID and client secret.

    2. Set environment variables or create .env file:
       - APPTICS_CLIENT_ID
       - APPTICS_CLIENT_SECRET
       - APPTICS_ACCOUNTS_URI (optional, defaults to https://accounts.zoho.com/)

    3. In the Self Client's "Generate Code" tab, generate a grant code with
       the Apptics scopes you need.

    4. Run this script and paste the grant code when prompted:
       python scripts/get_oauth_token.py

    5. Copy the refresh token to your deployment secrets
"""

import os
import sys

import requests
from dotenv import load_dotenv

load_dotenv()

# Configuration
CLIENT_ID = os.environ.get("APPTICS_CLIENT_ID")
CLIENT_SECRET = os.environ.get("APPTICS_CLIENT_SECRET")
ACCOUNTS_URI = os.environ.get("APPTICS_ACCOUNTS_URI") or "https://accounts.zoho.com/"

if not ACCOUNTS_URI.endswith("/"):
    ACCOUNTS_URI += "/"

TOKEN_URL = f"{ACCOUNTS_URI}oauth/v2/token"


def exchange_code_for_tokens(grant_code: str) -> dict:
    """Exchange a self-client grant code for access and refresh tokens."""
    data = {
        "client_id": CLIENT_ID,
        "client_secret": CLIENT_SECRET,
        "code": grant_code,
        "grant_type": "authorization_code",
    }

    response = requests.post(TOKEN_URL, data=data)
    response.raise_for_status()
    tokens = response.json()
    # Zoho answers an invalid code with 200 and an "error" field
    if "error" in tokens:
        raise RuntimeError(f"Token exchange rejected: {tokens['error']}")
    return tokens


def main():
    print("=" * 60)
    print("Zoho Apptics Refresh Token Generator")
    print("=" * 60)
    print()

    # Validate configuration
    missing = []
    if not CLIENT_ID:
        missing.append("APPTICS_CLIENT_ID")
    if not CLIENT_SECRET:
        missing.append("APPTICS_CLIENT_SECRET")

    if missing:
        print("ERROR: Missing required environment variables:")
        for var in missing:
            print(f"  - {var}")
        print()
        print("Set these variables or create a .env file with them.")
        sys.exit(1)

    print("Configuration:")
    print(f"  Client ID: {CLIENT_ID[:20]}...")
    print(f"  Token URL: {TOKEN_URL}")
    print()

    print("Step 1: Generate a Grant Code")
    print("-" * 40)
    print("1. Open the Zoho API Console and select your Self Client")
    print("2. Open the 'Generate Code' tab and enter the Apptics scopes")
    print("3. Choose a duration and create the code")
    print("The code expires within minutes, so continue right away.")
    print()

    grant_code = input("Paste grant code here: ").strip()
    if not grant_code:
        print()
        print("ERROR: No grant code entered")
        sys.exit(1)

    print()
    print("Step 2: Exchanging code for tokens...")
    print("-" * 40)

    try:
        tokens = exchange_code_for_tokens(grant_code)
    except requests.exceptions.HTTPError as e:
        print()
        print(f"ERROR: Token exchange failed: {e}")
        print(f"Response: {e.response.text}")
        sys.exit(1)
    except Exception as e:
        print()
        print(f"ERROR: {e}")
        sys.exit(1)

    refresh_token = tokens.get("refresh_token")
    if not refresh_token:
        print()
        print("ERROR: Response did not include a refresh token.")
        print(f"Response: {tokens}")
        sys.exit(1)

    print()
    print("SUCCESS! Tokens received.")
    print()
    print("=" * 60)
    print("YOUR REFRESH TOKEN (save this securely!):")
    print("=" * 60)
    print()
    print(refresh_token)
    print()
    print("Access Token (expires in ~1 hour):")
    print(f"  {tokens.get('access_token', 'N/A')[:20]}...")
    print("Expires In:", tokens.get("expires_in"), "seconds")
    print("API Domain:", tokens.get("api_domain"))
    print()
    print("Example .env file:")
    print("-" * 40)
    print(f"APPTICS_CLIENT_ID={CLIENT_ID}")
    print("APPTICS_CLIENT_SECRET=<your client secret>")
    print(f"APPTICS_REFRESH_TOKEN={refresh_token}")
    print(f"APPTICS_ACCOUNTS_URI={ACCOUNTS_URI}")
    print("-" * 40)


if __name__ == "__main__":
    main()
