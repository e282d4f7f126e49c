"""
Configuration loading and management.
"""

import os
import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from .catalog import MOUSE_DRIVER, ROOT_PATH
from .errors import ConfigError


@dataclass
class Config:
    """Main application configuration."""
    root_path: str = ROOT_PATH  # Registry path under HKLM holding HID devices
    mouse_driver: str = MOUSE_DRIVER  # Driver token that marks a mouse
    log_level: str = "INFO"
    highlight_flipped: bool = True  # Colour flipped devices in the console table


def get_config_path() -> Path:
    """Get the configuration file path."""
    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', '~')).expanduser()
    elif os.name == 'posix':
        if 'darwin' in os.uname().sysname.lower():  # macOS
            base = Path.home() / 'Library' / 'Application Support'
        else:  # Linux
            base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))
    else:
        base = Path.home()

    return base / 'flipwheel' / 'config.yaml'


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file."""
    if path is None:
        path = get_config_path()

    if not path.exists():
        return create_default_config(path)

    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(path, f"invalid YAML ({e})")
    if not isinstance(data, dict):
        raise ConfigError(path, "top level must be a mapping")

    defaults = Config()
    return Config(
        root_path=str(data.get('root_path', defaults.root_path)),
        mouse_driver=str(data.get('mouse_driver', defaults.mouse_driver)),
        log_level=str(data.get('log_level', defaults.log_level)).upper(),
        highlight_flipped=bool(data.get('highlight_flipped', defaults.highlight_flipped)),
    )


def create_default_config(path: Path) -> Config:
    """Create and save a default configuration."""
    default_yaml = f"""# flipwheel configuration

# Registry path (under HKEY_LOCAL_MACHINE) that lists HID devices
root_path: '{ROOT_PATH}'

# DeviceDesc driver token identifying a mouse (exact, case-sensitive)
mouse_driver: '{MOUSE_DRIVER}'

# DEBUG, INFO, WARNING or ERROR
log_level: INFO

# Show flipped devices in green in the console table
highlight_flipped: true
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write(default_yaml)

    return load_config(path)

