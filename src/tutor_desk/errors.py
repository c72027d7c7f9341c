"""Exceptions raised by the storage layer."""


class StorageError(Exception):
    """Base class for storage failures that are not a plain "not found"."""


class StorageUnavailable(StorageError):
    """The persistence backend could not be reached."""


class DuplicateUserError(StorageError):
    def __init__(self, field: str, value: str):
        super().__init__(f"A user with {field} {value!r} already exists")
        self.field = field
        self.value = value
