#!/usr/bin/env python3
"""
Run the BERT service over HTTP and gRPC.

The model is not built here: --model names a factory (module:function) that
returns a ready-to-use model implementing one or more ranking.model interfaces.

Usage:
    python -m serving.run_server --model my_models.qa:load --tls-disable

    Or with custom settings:
    python -m serving.run_server --model my_models.qa:load \\
        --address 0.0.0.0:8080 --grpc-address 0.0.0.0:8081 \\
        --tls-cert cert.pem --tls-key key.pem

    Or from a YAML file (flags take precedence):
    python -m serving.run_server --model my_models.qa:load --config server.yaml
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

from .config import LOG_LEVELS, ServerConfig
from .bert_service import BertService
from .errors import ServerStartupError
from .server import start_default_server

logger = logging.getLogger(__name__)


def load_factory(reference: str) -> Callable[[], Any]:
    """
    Resolve a "package.module:function" reference.

    Raises:
        ValueError: If the reference is malformed or does not name a callable
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Invalid factory reference '{reference}', expected module:function")

    factory = getattr(importlib.import_module(module_name), attr, None)
    if not callable(factory):
        raise ValueError(f"'{reference}' does not name a callable")
    return factory


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the BERT service (HTTP + gRPC)")
    parser.add_argument(
        "--model",
        type=str,
        required=True,
        help="Model factory, module:function (required)"
    )
    parser.add_argument(
        "--tokenizer",
        type=str,
        default=None,
        help="Tokenizer factory, module:function (default: regex word tokenizer)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file"
    )
    parser.add_argument(
        "--address",
        type=str,
        default=None,
        help="HTTP bind address (default: 0.0.0.0:1987)"
    )
    parser.add_argument(
        "--grpc-address",
        type=str,
        default=None,
        help="gRPC bind address (default: 0.0.0.0:1976)"
    )
    parser.add_argument(
        "--tls-cert",
        type=Path,
        default=None,
        help="TLS certificate (PEM)"
    )
    parser.add_argument(
        "--tls-key",
        type=Path,
        default=None,
        help="TLS private key (PEM)"
    )
    parser.add_argument(
        "--tls-disable",
        action="store_true",
        default=None,
        help="Accept plaintext connections on both listeners"
    )
    parser.add_argument(
        "--serialize-inference",
        action="store_true",
        default=None,
        help="Serialize model calls (for models that are not safe to call concurrently)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=LOG_LEVELS,
        help="Logging level (default: info)"
    )
    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Merge the YAML file (if any) with command line flags."""
    overrides = {
        "http_address": args.address,
        "grpc_address": args.grpc_address,
        "tls_cert": args.tls_cert,
        "tls_key": args.tls_key,
        "tls_disable": args.tls_disable,
        "serialize_inference": args.serialize_inference,
        "log_level": args.log_level,
    }
    if args.config is not None:
        return ServerConfig.from_yaml(args.config, **overrides)
    return ServerConfig.from_dict({k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(
        level=config.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger.info(f"Loading model from {args.model}")
    model = load_factory(args.model)()
    tokenizer = load_factory(args.tokenizer)() if args.tokenizer else None

    service = BertService(
        model,
        tokenizer=tokenizer,
        ranking_config=config.ranking,
        serialize_inference=config.serialize_inference,
    )

    scheme = "http" if config.tls_disable else "https"
    print(f"Starting BERT service: HTTP on {config.http_address}, gRPC on {config.grpc_address}")
    print(f"API docs available at: {scheme}://{config.http_address}/docs")

    try:
        start_default_server(service, config)
    except ServerStartupError as e:
        logger.error(f"Failed to start server: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())
