from .security_headers import apply_response_security_headers

__all__ = [
    "apply_response_security_headers",
]
