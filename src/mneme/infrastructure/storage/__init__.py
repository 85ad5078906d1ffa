from .json_file import JsonFileStore
from .memory import MemoryStore

__all__ = ["JsonFileStore", "MemoryStore"]
