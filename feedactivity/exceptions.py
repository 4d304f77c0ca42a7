from typing import Optional


class ActivityCodecError(Exception):
    """Base exception for activity encode/decode failures."""

    def __init__(self, code: str, message: str, details: Optional[dict] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {"error": {"code": self.code, "message": self.message}}
        if self.details:
            result["error"]["details"] = self.details
        return result


class EncodeError(ActivityCodecError):
    def __init__(self, message: str = "Activity could not be serialized.", details: Optional[dict] = None):
        super().__init__(code="encode_failed", message=message, details=details)


class DecodeError(ActivityCodecError):
    def __init__(self, message: str = "Activity payload is not a JSON object.", details: Optional[dict] = None):
        super().__init__(code="decode_failed", message=message, details=details)


__all__ = ["ActivityCodecError", "DecodeError", "EncodeError"]
