import argparse
import configparser

from aiohttp import web

from .config import load_config
from .web_api import create_web_app


def main():
    parser = argparse.ArgumentParser(description="Telegram login widget verification API")
    parser.add_argument("-c", "--config", type=str, default="config.ini", help="Path to config file")
    args = parser.parse_args()

    config_file = configparser.ConfigParser()
    if not config_file.read(args.config):
        parser.error(f"cannot read config file: {args.config}")
    config = load_config(config_file)

    print(f"Login widget API listening on {config.host}:{config.port}")
    web.run_app(create_web_app(config), host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    main()
