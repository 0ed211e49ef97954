from enum import Enum

class ErrorCode(str, Enum):
    INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
    TABLE_CONFLICT = "TABLE_CONFLICT"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
