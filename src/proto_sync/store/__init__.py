"""On-disk cache of source repositories."""

from .locator import DEFAULT_STORE_DIR, Store, ignore_path, store_key

__all__ = ["DEFAULT_STORE_DIR", "Store", "ignore_path", "store_key"]
