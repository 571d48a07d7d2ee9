"""Print a fresh FERNET_KEY for the .env file."""
from brokerlink.core.security import generate_key

if __name__ == "__main__":
    print(f"FERNET_KEY={generate_key()}")
