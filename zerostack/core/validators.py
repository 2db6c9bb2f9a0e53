"""Input validation helpers for caller-supplied values."""
from __future__ import annotations

from .exceptions import ValidationError

MAX_TEXT_LENGTH = 4000


def validate_node(raw: str) -> str:
    """Validate a node (collection) name before it is placed in a URL path.

    Args:
        raw: Node name such as ``"messages"``

    Returns:
        Trimmed node name

    Raises:
        ValidationError: If the name is empty or contains path/query characters
    """
    node = (raw or "").strip()
    if not node:
        raise ValidationError("Node name is required")
    if len(node) > 64:
        raise ValidationError("Node name must not exceed 64 characters")
    if any(not (char.isalnum() or char in {"_", "-"}) for char in node):
        raise ValidationError("Node name may only contain letters, digits, '_' and '-'")
    return node


def validate_item_id(raw: str) -> str:
    """Validate an item id used in ``/data/{node}/{id}``."""
    item_id = str(raw or "").strip()
    if not item_id:
        raise ValidationError("Item id is required")
    if any(char in item_id for char in "/?#") or any(char.isspace() for char in item_id):
        raise ValidationError("Item id contains invalid characters")
    return item_id


def validate_email(email: str) -> str:
    """Validate email address.

    Args:
        email: Email address to validate

    Returns:
        Normalized email address

    Raises:
        ValidationError: If email is invalid
    """
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationError("Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain or "." not in domain:
        raise ValidationError("Invalid email format")
    if len(email) > 254:
        raise ValidationError("Email exceeds maximum length")

    return email


def validate_password(password: str, confirm: str | None = None) -> str:
    """Check a password is present and, when given, matches its confirmation."""
    if not password:
        raise ValidationError("Password is required")
    if confirm is not None and password != confirm:
        raise ValidationError("Passwords do not match")
    return password


def validate_text(text: str, field: str = "Message") -> str:
    """Trim free text and reject it when empty.

    Args:
        text: Raw user input
        field: Field name for error messages

    Returns:
        Trimmed text
    """
    text = (text or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(f"{field} exceeds maximum length")
    return text
