import re
import secrets
import string
from typing import Optional, Pattern, Union

from .exceptions import ValidationError

ACCOUNT_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9._-]+$')
SINCE_ID_PATTERN = re.compile(r'^([0-9]+)kp([0-9]+)$')

_RANDOM_KEY_TABLE = string.ascii_lowercase + string.digits


def gen_random_key(length: int = 16) -> str:
    """Generates a random ``[a-z0-9]`` key."""
    return ''.join(secrets.choice(_RANDOM_KEY_TABLE) for _ in range(length))


def simple_parse(text: str, start: str, end: str) -> Optional[str]:
    """Returns the text between the first ``start`` marker and the next ``end``."""
    begin = text.find(start)
    if begin < 0:
        return None
    begin += len(start)
    finish = text.find(end, begin)
    if finish < 0:
        return None
    return text[begin:finish]


def validate_non_empty(value, name: str, optional: bool = False) -> Optional[str]:
    if value is None and optional:
        return None
    if value is None:
        raise ValidationError(f"argument '{name}' is required")
    if not isinstance(value, str):
        raise ValidationError(f"argument '{name}' is expected to be a string")
    value = value.strip()
    if not value:
        raise ValidationError(f"argument '{name}' is expected to be a non-empty string")
    return value


def validate_positive_int(value, name: str) -> int:
    if value is None:
        raise ValidationError(f"argument '{name}' is required")
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"argument '{name}' is expected to be an integer")
    if value <= 0:
        raise ValidationError(f"argument '{name}' is expected to be a positive integer")
    return value


def validate_positive_int_string(value: Union[int, str, None], name: str) -> int:
    """Accepts a positive int or its decimal string form and returns the int."""
    if value is None:
        raise ValidationError(f"argument '{name}' is required")
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"argument '{name}' is expected to be a string or integer")
    if isinstance(value, int):
        if value <= 0:
            raise ValidationError(f"argument '{name}' is expected to be a positive integer")
        return value

    message = (
        f"argument '{name}' is expected to be a positive integer "
        f"or string representation of a positive integer"
    )
    value = value.strip()
    if not re.fullmatch(r'[0-9]+', value) or int(value) <= 0:
        raise ValidationError(message)
    return int(value)


def validate_matches(value, pattern: Pattern, name: str, optional: bool = False) -> Optional[str]:
    if value is None and optional:
        return None
    if value is None:
        raise ValidationError(f"argument '{name}' is required")
    if not isinstance(value, str):
        raise ValidationError(f"argument '{name}' is expected to be a string")
    value = value.strip()
    if not pattern.match(value):
        raise ValidationError(f"argument '{name}' is not in the expected format")
    return value


def validate_account_name(value, name: str = 'account_name') -> str:
    value = validate_non_empty(value, name)
    if not ACCOUNT_NAME_PATTERN.match(value):
        raise ValidationError(
            f"argument '{name}' may only contain letters, digits, '.', '_' and '-'"
        )
    return value
