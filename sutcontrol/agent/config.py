from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from sutcontrol.capabilities.screen import DEFAULT_REGION

from .errors import ConfigInvalid
from .io import read_json
from .schema import SchemaRegistry

CONFIG_SCHEMA = "agent_config.schema.json"


@dataclass(frozen=True)
class AgentConfig:
    schema_version: str = "1.0"
    listen_host: str = "0.0.0.0"
    listen_port: int = 4488
    reconnect_wait_seconds: float = 5
    single_flight_reconnect: bool = True
    platform: str = "auto"
    descriptor_path: Path = Path("Connect.rdp")
    screenshot_region: tuple[int, int, int, int] | None = DEFAULT_REGION
    max_message_bytes: int = 1024 * 1024


def load_config(config_path: Path, schemas_base_dir: Path) -> AgentConfig:
    try:
        raw = read_json(config_path)
    except (OSError, ValueError) as e:
        raise ConfigInvalid(code="CONFIG_INVALID", message=f"cannot read {config_path}: {e}") from e
    reg = SchemaRegistry(schemas_base_dir=schemas_base_dir)
    reg.validate(raw, CONFIG_SCHEMA)

    defaults = AgentConfig()
    listen = raw.get("listen") or {}
    region = raw.get("screenshot_region", defaults.screenshot_region)
    descriptor = raw.get("descriptor_path")
    descriptor_path = defaults.descriptor_path
    if isinstance(descriptor, str) and descriptor.strip():
        descriptor_path = (config_path.parent / descriptor).resolve()

    return AgentConfig(
        schema_version=str(raw["schema_version"]),
        listen_host=str(listen.get("host", defaults.listen_host)),
        listen_port=int(listen.get("port", defaults.listen_port)),
        reconnect_wait_seconds=float(raw.get("reconnect_wait_seconds", defaults.reconnect_wait_seconds)),
        single_flight_reconnect=bool(raw.get("single_flight_reconnect", defaults.single_flight_reconnect)),
        platform=str(raw.get("platform", defaults.platform)),
        descriptor_path=descriptor_path,
        screenshot_region=None if region is None else tuple(int(v) for v in region),
        max_message_bytes=int(raw.get("max_message_bytes", defaults.max_message_bytes)),
    )
