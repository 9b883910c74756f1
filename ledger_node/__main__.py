# ledger_node/__main__.py
"""
Entry point for running a ledger node as a module:
    python -m ledger_node [--config ledger_config.yaml] [--host 0.0.0.0]
                          [--http-port 3001] [--p2p-port 6001]
                          [--peers ws://host:6001,ws://other:6001]
Env toggles (overridden by the flags above):
  HTTP_PORT, P2P_PORT, PEERS, LOG_LEVEL, LEDGER_CONFIG
"""

from __future__ import annotations

import argparse

import uvicorn

from .config import NodeSettings, load_config, setup_logging
from .ledger_api import create_app
from .node import LedgerNode


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="ledger-node",
        description="Run a ledger node (HTTP API + websocket peer links)",
    )
    p.add_argument("--config", default=None, help="Path to YAML config")
    p.add_argument("--host", default=None, help="HTTP bind address")
    p.add_argument("--http-port", type=int, default=None, help="HTTP port (default: 3001)")
    p.add_argument("--p2p-port", type=int, default=None, help="Peer websocket port (default: 6001)")
    p.add_argument("--peers", default=None, help="Comma-separated peer websocket URLs")
    return p.parse_args(argv)


def build_config(args) -> dict:
    cfg = load_config(args.config)
    if args.host is not None:
        cfg["server"]["host"] = args.host
    if args.http_port is not None:
        cfg["server"]["port"] = args.http_port
    if args.p2p_port is not None:
        cfg["p2p"]["port"] = args.p2p_port
    if args.peers is not None:
        cfg["p2p"]["peers"] = [p.strip() for p in args.peers.split(",") if p.strip()]
    return cfg


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = build_config(args)
    log = setup_logging(cfg)

    settings = NodeSettings.from_config(cfg)
    node = LedgerNode(settings)
    log.info(
        "starting node: http=%s:%s p2p=%s:%s peers=%s",
        settings.http_host,
        settings.http_port,
        settings.p2p_host,
        settings.p2p_port,
        settings.peers,
    )
    uvicorn.run(create_app(node), host=settings.http_host, port=settings.http_port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
