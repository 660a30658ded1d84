"""Tests for loading the INI configuration."""

import configparser

import pytest

from telegram_widget.config import Config, load_config


BOT_TOKEN = "123456789:abcdefGHIJKLmnopqrSTUVWXyz123456789"
BOT_TOKEN_HASH_HEX = "395bfa245bcc417a0baec609b4369cb5943ae6519bedfb8949552b5d103a69c0"


def _parse(text: str) -> configparser.ConfigParser:
    c = configparser.ConfigParser()
    c.read_string(text)
    return c


class TestLoadConfig:
    def test_token_with_defaults(self):
        config = load_config(_parse(f"[TELEGRAM]\nbot_token = {BOT_TOKEN}\n"))
        assert config.bot_token == BOT_TOKEN
        assert config.bot_token_hash == b""
        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.cors_origin == "*"

    def test_token_hash(self):
        config = load_config(_parse(f"[TELEGRAM]\nbot_token_hash = {BOT_TOKEN_HASH_HEX}\n"))
        assert config.bot_token_hash == bytes.fromhex(BOT_TOKEN_HASH_HEX)

    def test_api_section(self):
        config = load_config(_parse(
            f"[TELEGRAM]\nbot_token = {BOT_TOKEN}\n"
            "[API]\nhost = 127.0.0.1\nport = 9000\ncors_origin = https://example.com\n"
        ))
        assert config.host == "127.0.0.1"
        assert config.port == 9000
        assert config.cors_origin == "https://example.com"

    def test_both_secrets_rejected(self):
        with pytest.raises(ValueError):
            load_config(_parse(
                f"[TELEGRAM]\nbot_token = {BOT_TOKEN}\nbot_token_hash = {BOT_TOKEN_HASH_HEX}\n"
            ))

    def test_no_secret_rejected(self):
        with pytest.raises(ValueError):
            load_config(_parse("[TELEGRAM]\nbot_token =\n"))

    def test_bad_hash_length(self):
        with pytest.raises(ValueError):
            load_config(_parse("[TELEGRAM]\nbot_token_hash = abcd\n"))

    def test_bad_hash_hex(self):
        with pytest.raises(ValueError):
            load_config(_parse("[TELEGRAM]\nbot_token_hash = " + "zz" * 32 + "\n"))


class TestConfigVerifier:
    def test_same_mac_either_way(self):
        by_token = Config(bot_token=BOT_TOKEN).verifier()
        by_hash = Config(bot_token_hash=bytes.fromhex(BOT_TOKEN_HASH_HEX)).verifier()
        assert by_token.compute_mac("id=1") == by_hash.compute_mac("id=1")
