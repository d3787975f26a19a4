import re
import uuid

_ID_RE = re.compile(r"^[a-z]{3}_[0-9a-f]{32}$")


def gen_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def is_valid_id(value: str, prefix: str | None = None) -> bool:
    # Shape check only; says nothing about existence.
    if not value or not _ID_RE.match(value):
        return False
    return prefix is None or value.startswith(f"{prefix}_")
