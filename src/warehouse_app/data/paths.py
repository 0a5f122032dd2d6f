import os

DATA_DIR = os.path.join(os.path.dirname(__file__))
DATA_DIR_ENV = "WAREHOUSE_DATA_DIR"


def data_dir() -> str:
    env_dir = os.getenv(DATA_DIR_ENV)
    if env_dir:
        return os.path.abspath(os.path.expanduser(env_dir))
    return DATA_DIR


def products_xml_path() -> str:
    return os.path.join(data_dir(), "products.xml")


def pallets_xml_path() -> str:
    return os.path.join(data_dir(), "pallets.xml")


def packaging_xml_path() -> str:
    return os.path.join(data_dir(), "packaging_types.xml")


def stock_xml_path() -> str:
    return os.path.join(data_dir(), "stock.xml")
