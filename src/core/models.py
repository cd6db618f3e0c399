#!/usr/bin/env -S python3 -B -u
"""
Data Models for the Home Network Planner

This module provides type-safe data models using dataclasses and type hints
for all core data structures of the topology editor.

Key Features:
- Immutable node and edge records (changes produce new instances)
- Device data modelled as a tagged variant over device kind
- Separate position and visibility state per view mode
- Prefix and IP formatting helpers shared by the propagation engine
"""

from dataclasses import dataclass, field, fields
from typing import Dict, Optional, Type
from ipaddress import IPv4Network
from enum import Enum


class DeviceKind(str, Enum):
    """Device kind identifiers (stable external contract)."""
    MODEM = "modemNode"
    ROUTER = "routerNode"
    SWITCH = "switchNode"
    WIFI = "wifiNode"
    GATEWAY = "gatewayNode"
    SMART_HOME = "smartHomeNode"
    CAMERA = "cameraNode"
    TERMINAL = "deviceNode"


class RouterMode(str, Enum):
    """Router connection mode."""
    DIAL = "dial"
    INHERIT = "inherit"


class TerminalSubtype(str, Enum):
    """Terminal device classification."""
    LAPTOP = "laptop"
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TV = "tv"


class ViewMode(str, Enum):
    """Editor view mode."""
    TOPOLOGY = "topology"
    FLOORPLAN = "floorplan"


# Localized kind names used by the inventory export
DEVICE_KIND_LABELS: Dict[DeviceKind, str] = {
    DeviceKind.MODEM: "光猫",
    DeviceKind.ROUTER: "路由器",
    DeviceKind.SWITCH: "交换机",
    DeviceKind.WIFI: "WiFi 节点",
    DeviceKind.GATEWAY: "智能网关",
    DeviceKind.SMART_HOME: "智能设备",
    DeviceKind.CAMERA: "监控摄像头",
    DeviceKind.TERMINAL: "终端设备",
}

# Default labels of freshly placed nodes
PALETTE_LABELS: Dict[DeviceKind, str] = dict(DEVICE_KIND_LABELS)
PALETTE_LABELS[DeviceKind.SMART_HOME] = "智能家居"

NOT_CONNECTED = "not connected"


def subnet_prefix(subnet: str) -> Optional[str]:
    """
    Return the first three octets of a /24 subnet address.

    Args:
        subnet: Subnet network address such as "192.168.31.0"

    Returns:
        Prefix such as "192.168.31", or None for an empty subnet
    """
    if not subnet:
        return None
    return ".".join(subnet.split(".")[:3])


def format_ip(prefix: Optional[str], suffix: str) -> str:
    """Build an address from prefix and host suffix ("" without a prefix)."""
    if not prefix:
        return ""
    return f"{prefix}.{suffix}" if suffix else f"{prefix}."


def is_valid_subnet(subnet: str) -> bool:
    """Check that a subnet string is a /24 IPv4 network address."""
    try:
        IPv4Network(f"{subnet}/24")
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class Position:
    """Canvas coordinates of a node in one view."""
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "Position":
        if not isinstance(data, dict):
            return cls()
        return cls(x=float(data.get("x", 0) or 0), y=float(data.get("y", 0) or 0))

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class DeviceData:
    """
    Data record shared by every device kind.

    `ip` and `inherited_subnet` are derived by the propagation engine and
    never edited directly. `inherited_subnet` of None means the device is
    not connected to any subnet.
    """
    label: str = ""
    model: str = ""
    area: str = ""
    ip_suffix: str = "1"
    ip: str = ""
    inherited_subnet: Optional[str] = None

    @property
    def originates_subnet(self) -> bool:
        """True if the device is authoritative for its own subnet."""
        return False

    @property
    def own_prefix(self) -> Optional[str]:
        """Prefix of the subnet configured on the device itself."""
        return None

    @classmethod
    def field_names(cls) -> frozenset:
        return frozenset(f.name for f in fields(cls))


@dataclass(frozen=True)
class ModemData(DeviceData):
    """Modem: always originates the subnet configured on it."""
    subnet: str = ""

    @property
    def originates_subnet(self) -> bool:
        return True

    @property
    def own_prefix(self) -> Optional[str]:
        return subnet_prefix(self.subnet)


@dataclass(frozen=True)
class RouterData(DeviceData):
    """Router: originates a subnet in dial mode, bridges its parent's otherwise."""
    mode: RouterMode = RouterMode.DIAL
    subnet: str = ""

    @property
    def originates_subnet(self) -> bool:
        return self.mode == RouterMode.DIAL

    @property
    def own_prefix(self) -> Optional[str]:
        if not self.originates_subnet:
            return None
        return subnet_prefix(self.subnet)


@dataclass(frozen=True)
class TerminalData(DeviceData):
    """Terminal device (laptop, desktop, phone, TV)."""
    device_subtype: TerminalSubtype = TerminalSubtype.LAPTOP


_DATA_TYPES: Dict[DeviceKind, Type[DeviceData]] = {
    DeviceKind.MODEM: ModemData,
    DeviceKind.ROUTER: RouterData,
    DeviceKind.TERMINAL: TerminalData,
}

# Fields computed by the propagation engine
DERIVED_FIELDS = frozenset({"ip", "inherited_subnet"})


def data_type_for(kind: DeviceKind) -> Type[DeviceData]:
    """Return the data variant class carried by a device kind."""
    return _DATA_TYPES.get(kind, DeviceData)


@dataclass(frozen=True)
class Node:
    """
    A device placed in the topology.

    The node always carries both view contexts; the view mode only
    selects which one is projected for rendering.
    """
    id: str
    kind: DeviceKind
    data: DeviceData = field(default_factory=DeviceData)
    topology_position: Position = field(default_factory=Position)
    floor_plan_position: Position = field(default_factory=Position)
    visible_in_topology: bool = True
    visible_in_floor_plan: bool = True

    def position_for(self, mode: ViewMode) -> Position:
        """Get the stored position for a view mode."""
        if mode == ViewMode.FLOORPLAN:
            return self.floor_plan_position
        return self.topology_position

    def is_visible_in(self, mode: ViewMode) -> bool:
        """Check the visibility flag for a view mode."""
        if mode == ViewMode.FLOORPLAN:
            return self.visible_in_floor_plan
        return self.visible_in_topology

    def is_root(self, has_parent: bool) -> bool:
        """Check whether the node is a propagation root."""
        return not has_parent or self.data.originates_subnet

    @property
    def effective_prefix(self) -> Optional[str]:
        """Prefix in effect on the node: its own if it originates one, else the inherited one."""
        if self.data.originates_subnet:
            return self.data.own_prefix
        if self.data.inherited_subnet:
            return subnet_prefix(self.data.inherited_subnet.split("/")[0])
        return None

    @property
    def inherited_subnet_display(self) -> str:
        return self.data.inherited_subnet or NOT_CONNECTED


@dataclass(frozen=True)
class Edge:
    """Directed connection from source node id to target node id."""
    id: str
    source: str
    target: str

    @classmethod
    def from_dict(cls, data: Dict) -> "Edge":
        """Create Edge from dictionary representation."""
        source = str(data["source"])
        target = str(data["target"])
        edge_id = data.get("id") or edge_id_for(source, target)
        return cls(id=str(edge_id), source=source, target=target)

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "source": self.source, "target": self.target}


def edge_id_for(source: str, target: str) -> str:
    """Edge id used for a new connection between two nodes."""
    return f"xy-edge__{source}-{target}"
