import json


def sse_event(event_type: str, **kwargs) -> str:
    """Format a Server-Sent Event data line.

    Usage:
        yield sse_event("status", status="loading_instructions", brand="cga")
        yield sse_event("done", result={...})
        yield sse_event("error", error="Something went wrong")
    """
    payload = {"type": event_type, **kwargs}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
