"""
Seed encrypted Upstox API credentials for an existing user.

Usage:
  python -m scripts.seed_broker_credentials --email user@example.com \
      --api-key "$UPSTOX_API_KEY" --api-secret "$UPSTOX_API_SECRET" \
      --redirect-uri https://app.example.com/upstox/callback

Requirements:
  - FERNET_KEY and DATABASE_URL configured in environment (or .env).
  - The target user must exist (sign up first).
"""
import argparse
import os

from brokerlink.auth.broker_service import BrokerConnectionService
from brokerlink.brokers.upstox import UpstoxOAuthClient
from brokerlink.core.config import get_settings
from brokerlink.core.database import Database
from brokerlink.core.security import EncryptionManager
from brokerlink.models.auth import PlatformUser


def upsert_credentials(email: str, api_key: str, api_secret: str, redirect_uri: str) -> None:
    settings = get_settings()
    database = Database(settings.DATABASE_URL)
    database.create_all()
    session = database.SessionLocal()
    try:
        user = session.query(PlatformUser).filter(PlatformUser.email == email.lower()).first()
        if not user:
            raise SystemExit(f"User {email} not found. Create the user before seeding credentials.")

        service = BrokerConnectionService(
            session,
            settings,
            EncryptionManager.from_settings(settings),
            UpstoxOAuthClient.from_settings(settings),
        )
        created, connection = service.upsert_credentials(user.user_id, api_key, api_secret, redirect_uri)
        action = "created" if created else "updated"
        print(f"{action.capitalize()} Upstox credentials (connection_id={connection.connection_id}) for {user.email}.")
    finally:
        session.close()
        database.dispose()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed encrypted Upstox credentials into the database")
    parser.add_argument("--email", type=str, required=True, help="Email of the user that owns the credentials")
    parser.add_argument("--api-key", type=str, default=os.getenv("UPSTOX_API_KEY"), help="Upstox API key")
    parser.add_argument("--api-secret", type=str, default=os.getenv("UPSTOX_API_SECRET"), help="Upstox API secret")
    parser.add_argument("--redirect-uri", type=str, default=os.getenv("UPSTOX_REDIRECT_URL"), help="Registered redirect URI")
    args = parser.parse_args()

    missing = []
    if not args.api_key:
        missing.append("--api-key or UPSTOX_API_KEY")
    if not args.api_secret:
        missing.append("--api-secret or UPSTOX_API_SECRET")
    if not args.redirect_uri:
        missing.append("--redirect-uri or UPSTOX_REDIRECT_URL")
    if missing:
        raise SystemExit(f"Missing required values: {', '.join(missing)}")

    return args


def main() -> None:
    args = parse_args()
    upsert_credentials(
        email=args.email,
        api_key=args.api_key,
        api_secret=args.api_secret,
        redirect_uri=args.redirect_uri,
    )


if __name__ == "__main__":
    main()
