# ledger_node/config.py
import copy
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

log = logging.getLogger(__name__)

CONFIG_FILE = "ledger_config.yaml"

# -------- Defaults --------
_DEFAULT: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",  # HTTP API bind address
        "port": 3001,
    },
    "p2p": {
        "host": "0.0.0.0",  # websocket peer server bind address
        "port": 6001,
        "peers": [],  # initial peers, e.g. ["ws://10.0.0.2:6001"]
        "max_message_bytes": 100 * 1024 * 1024,  # largest frame accepted from a peer
    },
    "logging": {"level": "INFO"},
}

# -------- ENV overrides --------
# Same variable names the rest of the network's nodes read.
_ENV_MAP = {
    ("server", "port"): ("HTTP_PORT", int),
    ("p2p", "port"): ("P2P_PORT", int),
    ("p2p", "peers"): ("PEERS", lambda raw: [p.strip() for p in raw.split(",") if p.strip()]),
    ("logging", "level"): ("LOG_LEVEL", str),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        try:
            casted = cast(val)
        except ValueError:
            log.warning("ignoring %s=%r: not a valid value", env_name, val)
            continue
        cfg.setdefault(section, {})
        cfg[section][key] = casted
    return cfg


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads the YAML config from ``path``, ``$LEDGER_CONFIG`` or ./ledger_config.yaml.
    Returns defaults if the file doesn't exist or can't be parsed.
    Environment overrides are applied last.
    """
    path = path or os.getenv("LEDGER_CONFIG") or CONFIG_FILE
    cfg = copy.deepcopy(_DEFAULT)

    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                cfg = _deep_merge(cfg, data)
            else:
                log.warning("config %s is not a mapping; using defaults", path)
        except (OSError, yaml.YAMLError):
            log.warning("failed to read config %s; using defaults", path, exc_info=True)

    cfg = _apply_env_overrides(cfg)

    # PEERS may be given as a single string in YAML too
    peers = cfg.get("p2p", {}).get("peers")
    if isinstance(peers, str):
        cfg["p2p"]["peers"] = [p.strip() for p in peers.split(",") if p.strip()]

    return cfg


@dataclass(frozen=True)
class NodeSettings:
    http_host: str = "0.0.0.0"
    http_port: int = 3001
    p2p_host: str = "0.0.0.0"
    p2p_port: int = 6001
    peers: List[str] = field(default_factory=list)
    max_message_bytes: int = 100 * 1024 * 1024
    log_level: str = "INFO"

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "NodeSettings":
        server = cfg.get("server", {})
        p2p = cfg.get("p2p", {})
        return cls(
            http_host=str(server.get("host", cls.http_host)),
            http_port=int(server.get("port", cls.http_port)),
            p2p_host=str(p2p.get("host", cls.p2p_host)),
            p2p_port=int(p2p.get("port", cls.p2p_port)),
            peers=list(p2p.get("peers") or []),
            max_message_bytes=int(p2p.get("max_message_bytes", cls.max_message_bytes)),
            log_level=str(cfg.get("logging", {}).get("level", cls.log_level)),
        )


def setup_logging(cfg: Dict[str, Any]) -> logging.Logger:
    level_str = (cfg.get("logging", {}).get("level", "INFO") or "INFO").upper()
    lvl = getattr(logging, level_str, logging.INFO)
    logging.basicConfig(level=lvl, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    return logging.getLogger("ledger_node")
