#!/usr/bin/env -S python3 -B -u
"""
Device inventory export.

Produces one spreadsheet row per canonical device (name, localized kind,
model, IP, area, connection mode) and writes them as CSV that spreadsheet
applications open directly.
"""

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Union

from .exceptions import EmptyInventoryError, StorageError
from .models import Node, RouterData, RouterMode, DEVICE_KIND_LABELS


INVENTORY_HEADERS = ['设备名称', '设备类型', '型号', 'IP 地址', '所在区域', '连接模式']
INVENTORY_FILENAME = '家庭网络设备清单.csv'

UNKNOWN_KIND_LABEL = '未知设备'
MODE_LABELS = {
    RouterMode.DIAL: '拨号',
    RouterMode.INHERIT: '继承',
}


@dataclass(frozen=True)
class InventoryRow:
    """One exported device."""
    name: str
    kind_label: str
    model: str
    ip: str
    area: str
    connection_mode: str

    def to_csv_row(self) -> List[str]:
        """Convert to CSV row format."""
        return [
            self.name,
            self.kind_label,
            self.model,
            self.ip,
            self.area,
            self.connection_mode,
        ]


def inventory_row(node: Node) -> InventoryRow:
    """Build the inventory row of a single device."""
    if isinstance(node.data, RouterData):
        connection_mode = MODE_LABELS[node.data.mode]
    else:
        connection_mode = '-'

    return InventoryRow(
        name=node.data.label,
        kind_label=DEVICE_KIND_LABELS.get(node.kind, UNKNOWN_KIND_LABEL),
        model=node.data.model,
        ip=node.data.ip,
        area=node.data.area,
        connection_mode=connection_mode
    )


def inventory_rows(nodes: Sequence[Node]) -> List[InventoryRow]:
    """
    Build inventory rows for all devices.

    Raises:
        EmptyInventoryError: If there are no devices
    """
    if not nodes:
        raise EmptyInventoryError()
    return [inventory_row(node) for node in nodes]


def write_inventory_csv(path: Union[str, Path], rows: Sequence[InventoryRow]) -> Path:
    """
    Write inventory rows with a header line.

    The file is UTF-8 with a byte order mark so spreadsheet applications
    detect the encoding of the localized labels.

    Raises:
        EmptyInventoryError: If there are no rows
        StorageError: If the file cannot be written
    """
    if not rows:
        raise EmptyInventoryError()

    path = Path(path)
    try:
        with open(path, 'w', newline='', encoding='utf-8-sig') as f:
            writer = csv.writer(f)
            writer.writerow(INVENTORY_HEADERS)
            for row in rows:
                writer.writerow(row.to_csv_row())
    except OSError as e:
        raise StorageError(str(path), "write", cause=e)
    return path
