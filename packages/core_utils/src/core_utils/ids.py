import uuid

__all__ = ["generate_request_id"]

def generate_request_id() -> str:
    """Random 16-hex request id for correlation when the caller sends none."""
    return uuid.uuid4().hex[:16]
