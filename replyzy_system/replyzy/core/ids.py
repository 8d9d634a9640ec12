import uuid

def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"

"""
ID generation utility & it provides:
- Task IDs for planning runs that arrive without one

The main purpose:
Short prefixed identifiers that group a run's trace events.
"""
