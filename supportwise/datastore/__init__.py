from .datastore_interface import BusinessDataStore
from .json_datastore import JsonBusinessDataStore

__all__ = [
    "BusinessDataStore",
    "JsonBusinessDataStore"
]
