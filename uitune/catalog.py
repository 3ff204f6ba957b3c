"""
Tweak catalog - the desired registry state for a snappier desktop.

DEFAULT_CATALOG is a load-time constant. A custom catalog can be loaded
from TOML:

    [[tweak]]
    id = "menu-show-delay"
    hive = "HKCU"
    path = 'Control Panel\\Desktop'
    name = "MenuShowDelay"
    value = "0"
    type = "String"
    description = "Open menus without delay"
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Tuple

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Fallback for older Python

from .protocol.tweak import Location, TweakSpec, ValueType
from .tuning import codec

_DESKTOP = r"Control Panel\Desktop"
_ADVANCED = r"Software\Microsoft\Windows\CurrentVersion\Explorer\Advanced"

DEFAULT_CATALOG: Tuple[TweakSpec, ...] = (
    TweakSpec(
        identity="menu-show-delay",
        location=Location.USER, path=_DESKTOP, name="MenuShowDelay",
        desired_value="0", value_type=ValueType.TEXT,
        description="Open menus without the 400 ms delay",
    ),
    TweakSpec(
        identity="mouse-hover-time",
        location=Location.USER, path=r"Control Panel\Mouse", name="MouseHoverTime",
        desired_value="10", value_type=ValueType.TEXT,
        description="Show hover tooltips and previews faster",
    ),
    TweakSpec(
        identity="visual-effects-custom",
        location=Location.USER,
        path=r"Software\Microsoft\Windows\CurrentVersion\Explorer\VisualEffects",
        name="VisualFXSetting",
        desired_value=2, value_type=ValueType.INTEGER32,
        description="Use 'adjust for best performance' visual effects",
    ),
    TweakSpec(
        identity="minimize-animation",
        location=Location.USER, path=_DESKTOP + r"\WindowMetrics", name="MinAnimate",
        desired_value="0", value_type=ValueType.TEXT,
        description="Disable minimize/maximize window animation",
    ),
    TweakSpec(
        identity="taskbar-animations",
        location=Location.USER, path=_ADVANCED, name="TaskbarAnimations",
        desired_value=0, value_type=ValueType.INTEGER32,
        description="Disable taskbar animations",
    ),
    TweakSpec(
        identity="listview-alpha-select",
        location=Location.USER, path=_ADVANCED, name="ListviewAlphaSelect",
        desired_value=0, value_type=ValueType.INTEGER32,
        description="Disable translucent selection rectangle",
    ),
    TweakSpec(
        identity="listview-shadow",
        location=Location.USER, path=_ADVANCED, name="ListviewShadow",
        desired_value=0, value_type=ValueType.INTEGER32,
        description="Disable drop shadows on desktop icon labels",
    ),
    TweakSpec(
        identity="aero-peek",
        location=Location.USER, path=r"Software\Microsoft\Windows\DWM", name="EnableAeroPeek",
        desired_value=0, value_type=ValueType.INTEGER32,
        description="Disable Aero Peek",
    ),
    TweakSpec(
        identity="transparency",
        location=Location.USER,
        path=r"Software\Microsoft\Windows\CurrentVersion\Themes\Personalize",
        name="EnableTransparency",
        desired_value=0, value_type=ValueType.INTEGER32,
        description="Disable transparency effects",
    ),
    TweakSpec(
        identity="drag-full-windows",
        location=Location.USER, path=_DESKTOP, name="DragFullWindows",
        desired_value="0", value_type=ValueType.TEXT,
        description="Show window outlines while dragging",
    ),
    TweakSpec(
        identity="startup-delay",
        location=Location.USER,
        path=r"Software\Microsoft\Windows\CurrentVersion\Explorer\Serialize",
        name="StartupDelayInMSec",
        desired_value=0, value_type=ValueType.INTEGER32,
        description="Start startup apps without the built-in delay",
    ),
    TweakSpec(
        identity="hung-app-timeout",
        location=Location.USER, path=_DESKTOP, name="HungAppTimeout",
        desired_value="2000", value_type=ValueType.TEXT,
        description="Detect unresponsive apps after 2 s",
    ),
    TweakSpec(
        identity="wait-to-kill-app-timeout",
        location=Location.USER, path=_DESKTOP, name="WaitToKillAppTimeout",
        desired_value="2000", value_type=ValueType.TEXT,
        description="Wait at most 2 s for apps on shutdown",
    ),
    TweakSpec(
        identity="wait-to-kill-service-timeout",
        location=Location.MACHINE, path=r"SYSTEM\CurrentControlSet\Control",
        name="WaitToKillServiceTimeout",
        desired_value="2000", value_type=ValueType.TEXT,
        description="Wait at most 2 s for services on shutdown",
    ),
    TweakSpec(
        identity="foreground-priority",
        location=Location.MACHINE, path=r"SYSTEM\CurrentControlSet\Control\PriorityControl",
        name="Win32PrioritySeparation",
        desired_value=0x26, value_type=ValueType.INTEGER32,
        description="Short variable quantum with a 3:1 foreground boost",
    ),
    TweakSpec(
        identity="system-responsiveness",
        location=Location.MACHINE,
        path=r"SOFTWARE\Microsoft\Windows NT\CurrentVersion\Multimedia\SystemProfile",
        name="SystemResponsiveness",
        desired_value=10, value_type=ValueType.INTEGER32,
        description="Reserve less CPU for background multimedia tasks",
    ),
)


def validate_catalog(catalog: Iterable[TweakSpec]) -> Tuple[TweakSpec, ...]:
    """
    Check identities and registry keys are unique and desired values encode.

    Raises:
        ValueError: duplicate identity/key or an unencodable desired value
    """
    catalog = tuple(catalog)
    identities = set()
    keys = set()
    for tweak in catalog:
        if tweak.identity in identities:
            raise ValueError(f"Duplicate tweak id: {tweak.identity}")
        if tweak.key in keys:
            raise ValueError(f"Duplicate registry value {tweak.full_path}\\{tweak.name} ({tweak.identity})")
        identities.add(tweak.identity)
        keys.add(tweak.key)
        codec.encode(tweak.value_type, tweak.desired_value)
    return catalog


def _tweak_from_dict(data: Dict[str, Any]) -> TweakSpec:
    missing = [k for k in ("id", "hive", "path", "name") if not data.get(k)]
    if missing:
        raise ValueError(f"Tweak entry missing {', '.join(missing)}: {data}")
    return TweakSpec(
        identity=str(data["id"]),
        location=Location.parse(data["hive"]),
        path=str(data["path"]),
        name=str(data["name"]),
        desired_value=data.get("value"),
        value_type=codec.parse_type(data.get("type")),
        description=str(data.get("description", "")),
    )


def load_catalog(path: Path) -> Tuple[TweakSpec, ...]:
    """Load and validate a catalog from a TOML file with [[tweak]] tables."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    entries = data.get("tweak")
    if not isinstance(entries, list) or not entries:
        raise ValueError(f"No [[tweak]] entries in {path}")
    return validate_catalog(_tweak_from_dict(entry) for entry in entries)
