import pytest

from uitune.catalog import DEFAULT_CATALOG, load_catalog, validate_catalog
from uitune.protocol.tweak import Location, TweakSpec, ValueType


def test_default_catalog_is_valid():
    assert validate_catalog(DEFAULT_CATALOG) == DEFAULT_CATALOG
    assert len({t.identity for t in DEFAULT_CATALOG}) == len(DEFAULT_CATALOG)
    assert len({t.key for t in DEFAULT_CATALOG}) == len(DEFAULT_CATALOG)


def test_default_catalog_covers_both_hives():
    locations = {t.location for t in DEFAULT_CATALOG}
    assert locations == {Location.USER, Location.MACHINE}


def test_duplicate_registry_value_is_rejected():
    first = TweakSpec("a", Location.USER, r"Control Panel\Desktop", "MenuShowDelay", "0", ValueType.TEXT)
    second = TweakSpec("b", Location.USER, r"control panel\desktop", "menushowdelay", "10", ValueType.TEXT)

    with pytest.raises(ValueError, match="Duplicate registry value"):
        validate_catalog([first, second])


def test_duplicate_identity_is_rejected():
    first = TweakSpec("a", Location.USER, r"Control Panel\Desktop", "MenuShowDelay", "0", ValueType.TEXT)
    second = TweakSpec("a", Location.USER, r"Control Panel\Mouse", "MouseHoverTime", "10", ValueType.TEXT)

    with pytest.raises(ValueError, match="Duplicate tweak id"):
        validate_catalog([first, second])


def test_unencodable_desired_value_is_rejected():
    bad = TweakSpec("a", Location.USER, "Software\\Test", "Level", 1 << 40, ValueType.INTEGER32)
    with pytest.raises(ValueError):
        validate_catalog([bad])


def test_load_catalog_from_toml(tmp_path):
    path = tmp_path / "tweaks.toml"
    path.write_text(
        """
[[tweak]]
id = "menu-show-delay"
hive = "HKCU"
path = 'Control Panel\\Desktop'
name = "MenuShowDelay"
value = "0"
type = "String"
description = "Open menus without delay"

[[tweak]]
id = "foreground-priority"
hive = "HKEY_LOCAL_MACHINE"
path = 'SYSTEM\\CurrentControlSet\\Control\\PriorityControl'
name = "Win32PrioritySeparation"
value = 38
type = "DWord"
""",
        encoding="utf-8",
    )

    catalog = load_catalog(path)

    assert [t.identity for t in catalog] == ["menu-show-delay", "foreground-priority"]
    assert catalog[0].path == r"Control Panel\Desktop"
    assert catalog[0].description == "Open menus without delay"
    assert catalog[1].location == Location.MACHINE
    assert catalog[1].value_type == ValueType.INTEGER32
    assert catalog[1].desired_value == 38


def test_load_catalog_unknown_type_is_text(tmp_path):
    path = tmp_path / "tweaks.toml"
    path.write_text(
        '[[tweak]]\nid = "x"\nhive = "HKCU"\npath = "Software"\nname = "X"\nvalue = "1"\ntype = "Binary"\n',
        encoding="utf-8",
    )
    assert load_catalog(path)[0].value_type == ValueType.TEXT


@pytest.mark.parametrize("content", [
    "",
    '[[tweak]]\nid = "x"\nhive = "HKCU"\nname = "X"\n',
    '[[tweak]]\nid = "x"\nhive = "HKCR"\npath = "Software"\nname = "X"\n',
])
def test_load_catalog_rejects_bad_files(tmp_path, content):
    path = tmp_path / "tweaks.toml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_catalog(path)


def test_location_parse_aliases():
    assert Location.parse("hkcu") is Location.USER
    assert Location.parse("HKEY_LOCAL_MACHINE") is Location.MACHINE
    assert Location.parse(" MachineScope ") is Location.MACHINE
    with pytest.raises(ValueError):
        Location.parse("HKU")
