from dataclasses import dataclass

from .login import KEY_SIZE, Verifier


@dataclass
class Config:
    bot_token: str = ""
    bot_token_hash: bytes = b""
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origin: str = "*"

    def verifier(self) -> Verifier:
        """Build the Verifier for whichever form of the secret is configured."""
        if self.bot_token_hash:
            return Verifier.from_key(self.bot_token_hash)
        return Verifier.from_token(self.bot_token)


def _parse_token_hash(raw: str) -> bytes:
    """Parse the hex SHA-256 of the bot token into the raw key."""
    try:
        key = bytes.fromhex(raw)
    except ValueError as e:
        raise ValueError(f"bot_token_hash is not hexadecimal: {e}") from e
    if len(key) != KEY_SIZE:
        raise ValueError(f"bot_token_hash must be {2 * KEY_SIZE} hex characters")
    return key


def load_config(config) -> Config:
    """Build a Config from a parsed configparser object."""
    telegram = config["TELEGRAM"]
    bot_token = telegram.get("bot_token", "").strip()
    raw_hash = telegram.get("bot_token_hash", "").strip()
    if bot_token and raw_hash:
        raise ValueError("set only one of bot_token and bot_token_hash")
    if not bot_token and not raw_hash:
        raise ValueError("bot_token or bot_token_hash is required")
    bot_token_hash = _parse_token_hash(raw_hash) if raw_hash else b""

    api = config["API"] if config.has_section("API") else {}
    host = api.get("host", "0.0.0.0").strip() or "0.0.0.0"
    port = int(api.get("port", "8080").strip() or "8080")
    cors_origin = api.get("cors_origin", "*").strip() or "*"

    return Config(
        bot_token=bot_token,
        bot_token_hash=bot_token_hash,
        host=host,
        port=port,
        cors_origin=cors_origin,
    )
