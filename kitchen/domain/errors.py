"""Error taxonomy shared by the stores, the import parsers and the API layer."""


class KitchenError(Exception):
    """Base class for every rejection raised at a store boundary."""
    code = "error"

    def __init__(self, message: str = "", **details):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details


class EmptyInput(KitchenError):
    code = "empty_input"


# Name-specific spelling used by the add/edit paths
EmptyName = EmptyInput


class DuplicateName(KitchenError):
    code = "duplicate_name"


class InvalidReference(KitchenError):
    code = "invalid_reference"


class InvalidCategory(InvalidReference):
    code = "invalid_category"


class NotFound(KitchenError):
    code = "not_found"


class ProtectedDefault(KitchenError):
    code = "protected_default"


class InvalidValue(KitchenError):
    code = "invalid_value"


class ParseError(KitchenError):
    code = "parse_error"


class StorageWriteFailure(KitchenError):
    code = "storage_write_failure"


__all__ = [
    'KitchenError', 'EmptyInput', 'EmptyName', 'DuplicateName', 'InvalidReference',
    'InvalidCategory', 'NotFound', 'ProtectedDefault', 'InvalidValue', 'ParseError', 'StorageWriteFailure',
]
