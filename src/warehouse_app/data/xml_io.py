import os
import xml.etree.ElementTree as ET
from typing import Optional


def load_xml(path: str) -> ET.Element:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Missing data file: {path}")
    try:
        tree = ET.parse(path)
        return tree.getroot()
    except ET.ParseError as e:
        raise ValueError(f"Invalid XML in {path}: {e}")


def write_xml(root: ET.Element, path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tree = ET.ElementTree(root)
    tree.write(path, encoding="utf-8", xml_declaration=True)


def get_bool(element: ET.Element, name: str, default: bool = False) -> bool:
    value = element.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes")


def get_optional_int(element: ET.Element, name: str) -> Optional[int]:
    value = element.get(name)
    if value is None or value.strip() == "":
        return None
    return int(value)
