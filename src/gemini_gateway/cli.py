"""Command-line entry point for the gateway and the passthrough proxy."""

from __future__ import annotations

import argparse
import logging
import socket
import sys
from collections.abc import Callable

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from gemini_gateway.app import build_app
from gemini_gateway.config import AppConfig, LogLevel, load_config
from gemini_gateway.logging_utils import configure_logging
from gemini_gateway.passthrough import build_passthrough_app

APP_BUILDERS: dict[str, Callable[[AppConfig], FastAPI]] = {
    "gateway": build_app,
    "passthrough": build_passthrough_app,
}


def is_port_in_use(host: str, port: int) -> bool:
    """Check if a port is in use on a given host."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        return s.connect_ex((host, port)) == 0


def build_cli_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Run the OpenAI-compatible Gemini gateway"
    )
    parser.add_argument(
        "--config",
        dest="config_file",
        metavar="FILE",
        help="Path to a YAML configuration file",
    )
    parser.add_argument("--host")
    parser.add_argument("--port", type=int)
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[level.value for level in LogLevel],
        type=str.upper,
        help="Logging level",
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        metavar="FILE",
        help="Also write logs to FILE",
    )
    parser.add_argument(
        "--mode",
        choices=sorted(APP_BUILDERS),
        default="gateway",
        help="Serve the translating gateway or the host-based passthrough proxy",
    )
    return parser


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of *config* with the values given on the command line."""
    update: dict[str, object] = {}
    if args.host is not None:
        update["host"] = args.host
    if args.port is not None:
        update["port"] = args.port

    logging_update: dict[str, object] = {}
    if args.log_level is not None:
        logging_update["level"] = LogLevel(args.log_level)
    if args.log_file is not None:
        logging_update["log_file"] = args.log_file
    if logging_update:
        update["logging"] = config.logging.model_copy(update=logging_update)

    return config.model_copy(update=update)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, configure logging and serve the selected application."""
    args = build_cli_parser().parse_args(argv)

    load_dotenv()
    cfg = apply_cli_overrides(load_config(args.config_file), args)

    configure_logging(
        level=cfg.logging.level.value,
        log_file=cfg.logging.log_file,
        secrets=cfg.secrets() if cfg.logging.redact_secrets else None,
    )

    app = APP_BUILDERS[args.mode](cfg)

    if is_port_in_use(cfg.host, cfg.port):
        error_msg = f"Port {cfg.port} is already in use."
        logging.error(error_msg)
        sys.stderr.write(f"\nERROR: {error_msg}\n")
        sys.exit(1)

    logging.info("Starting %s on %s:%s", args.mode, cfg.host, cfg.port)
    try:
        uvicorn.run(
            app,
            host=cfg.host,
            port=cfg.port,
            log_level=cfg.logging.level.value.lower(),
        )
    except Exception as e:
        logging.exception("Uvicorn failed to start: %s", e)
        raise


if __name__ == "__main__":
    main()
