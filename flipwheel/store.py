"""
Hierarchical key/value stores.

The catalog and the wheel toggle only ever talk to a HierarchicalStore.
RegistryStore reads the live Windows registry through winreg; MemoryStore
keeps a tree of dicts and is used for tests and for offline YAML snapshots.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

import yaml

from .errors import AccessError, NotFoundError

try:
    import winreg
    WINREG_AVAILABLE = True
except ImportError:
    WINREG_AVAILABLE = False

log = logging.getLogger(__name__)

SEPARATOR = '\\'


def join_path(*segments: str) -> str:
    """Join path segments with the registry separator, skipping empty ones."""
    return SEPARATOR.join(s.strip(SEPARATOR) for s in segments if s)


def split_path(path: str) -> List[str]:
    return [s for s in path.split(SEPARATOR) if s]


class HierarchicalStore:
    """
    Path-addressed tree of nodes, each holding named values.

    Missing nodes and values raise NotFoundError. Every other failure to
    read or write raises AccessError.
    """

    def list_children(self, path: str) -> List[str]:
        raise NotImplementedError

    def list_value_names(self, path: str) -> List[str]:
        raise NotImplementedError

    def read_string_value(self, path: str, name: str) -> str:
        raise NotImplementedError

    def read_integer_value(self, path: str, name: str) -> int:
        raise NotImplementedError

    def write_integer_value(self, path: str, name: str, value: int) -> None:
        raise NotImplementedError


class RegistryStore(HierarchicalStore):
    """Store backed by the Windows registry."""

    def __init__(self, hive: Optional[int] = None):
        if not WINREG_AVAILABLE:
            raise AccessError("registry", "winreg is only available on Windows")
        self._hive = winreg.HKEY_LOCAL_MACHINE if hive is None else hive

    def _open(self, path: str, access: int):
        try:
            return winreg.OpenKey(self._hive, path, 0, access)
        except FileNotFoundError:
            raise NotFoundError(path)
        except OSError as e:
            raise AccessError(path, str(e))

    def list_children(self, path: str) -> List[str]:
        log.debug(f"Open {path}")
        with self._open(path, winreg.KEY_READ) as key:
            try:
                subkey_count, _, _ = winreg.QueryInfoKey(key)
                return [winreg.EnumKey(key, i) for i in range(subkey_count)]
            except OSError as e:
                raise AccessError(path, str(e))

    def list_value_names(self, path: str) -> List[str]:
        with self._open(path, winreg.KEY_READ) as key:
            try:
                _, value_count, _ = winreg.QueryInfoKey(key)
                return [winreg.EnumValue(key, i)[0] for i in range(value_count)]
            except OSError as e:
                raise AccessError(path, str(e))

    def _query(self, path: str, name: str):
        with self._open(path, winreg.KEY_READ) as key:
            try:
                return winreg.QueryValueEx(key, name)
            except FileNotFoundError:
                raise NotFoundError(path, name)
            except OSError as e:
                raise AccessError(path, str(e))

    def read_string_value(self, path: str, name: str) -> str:
        value, value_type = self._query(path, name)
        if value_type not in (winreg.REG_SZ, winreg.REG_EXPAND_SZ):
            raise AccessError(path, f"value {name!r} is not a string")
        return value

    def read_integer_value(self, path: str, name: str) -> int:
        value, value_type = self._query(path, name)
        if value_type not in (winreg.REG_DWORD, winreg.REG_QWORD):
            raise AccessError(path, f"value {name!r} is not an integer")
        return value

    def write_integer_value(self, path: str, name: str, value: int) -> None:
        with self._open(path, winreg.KEY_SET_VALUE) as key:
            try:
                winreg.SetValueEx(key, name, 0, winreg.REG_DWORD, value)
            except OSError as e:
                raise AccessError(path, str(e))


TreeNode = Dict[str, Any]


class SnapshotLoader(yaml.SafeLoader):
    """Safe loader that keeps mapping keys as the literal text, so 0001 stays '0001'."""

    def construct_mapping(self, node, deep=False):
        for key_node, _ in node.value:
            if isinstance(key_node, yaml.ScalarNode) and key_node.tag != 'tag:yaml.org,2002:merge':
                key_node.tag = 'tag:yaml.org,2002:str'
        return super().construct_mapping(node, deep=deep)


class MemoryStore(HierarchicalStore):
    """
    Store backed by nested dicts.

    Dict entries are child nodes; any other entry is a named value. Child
    order is the dict's insertion order.
    """

    def __init__(self, tree: Optional[TreeNode] = None, read_only: bool = False):
        self.tree: TreeNode = tree if tree is not None else {}
        self.read_only = read_only
        self._denied: Set[str] = set()

    @classmethod
    def load(cls, path: Union[str, Path], read_only: bool = False) -> "MemoryStore":
        """Load a store from a YAML snapshot."""
        with open(path, 'r') as f:
            try:
                data = yaml.load(f, Loader=SnapshotLoader) or {}
            except yaml.YAMLError as e:
                raise AccessError(str(path), f"invalid snapshot YAML ({e})")
        if not isinstance(data, dict):
            raise AccessError(str(path), "snapshot root must be a mapping")
        return cls(data, read_only=read_only)

    def save(self, path: Union[str, Path]):
        """Write the tree back as a YAML snapshot."""
        with open(path, 'w') as f:
            yaml.safe_dump(self.tree, f, default_flow_style=False, sort_keys=False)

    def deny(self, path: str):
        """Make every access at this node fail with AccessError."""
        self._denied.add(join_path(*split_path(path)).lower())

    def _node(self, path: str) -> TreeNode:
        node = self.tree
        walked: List[str] = []
        for segment in split_path(path):
            walked.append(segment)
            if join_path(*walked).lower() in self._denied:
                raise AccessError(path)
            child = self._child(node, segment)
            if not isinstance(child, dict):
                raise NotFoundError(path)
            node = child
        return node

    @staticmethod
    def _child(node: TreeNode, name: str):
        # Registry names are case-insensitive
        if name in node:
            return node[name]
        lowered = name.lower()
        for key, value in node.items():
            if key.lower() == lowered:
                return value
        return None

    def list_children(self, path: str) -> List[str]:
        node = self._node(path)
        return [k for k, v in node.items() if isinstance(v, dict)]

    def list_value_names(self, path: str) -> List[str]:
        node = self._node(path)
        return [k for k, v in node.items() if not isinstance(v, dict)]

    def _value(self, path: str, name: str):
        value = self._child(self._node(path), name)
        if value is None or isinstance(value, dict):
            raise NotFoundError(path, name)
        return value

    def read_string_value(self, path: str, name: str) -> str:
        value = self._value(path, name)
        if not isinstance(value, str):
            raise AccessError(path, f"value {name!r} is not a string")
        return value

    def read_integer_value(self, path: str, name: str) -> int:
        value = self._value(path, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise AccessError(path, f"value {name!r} is not an integer")
        return value

    def write_integer_value(self, path: str, name: str, value: int) -> None:
        if self.read_only:
            raise AccessError(path, "store is read-only")
        node = self._node(path)
        for key in list(node):
            if key.lower() == name.lower() and not isinstance(node[key], dict):
                name = key
                break
        node[name] = int(value)
