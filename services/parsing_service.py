import re
from typing import Tuple

PUSH_CODE = "push"

# "secret+123456" or "secret+push"; the suffix is optional
_MFA_SUFFIX = re.compile(r'^(.*?)(\+([0-9]{6}|push))?$', re.IGNORECASE | re.DOTALL)
_TOTP_CODE = re.compile(r'[0-9]{6}')


def split_mfa_code(password: str) -> Tuple[str, str]:
    """
    Split a combined password into (base_password, trailing_code).
    The code is a 6-digit TOTP value or "push" (normalized to lower case);
    without a matching suffix the password is returned unchanged with an empty code.
    """
    match = _MFA_SUFFIX.match(password or "")
    if not match or match.group(3) is None:
        return password or "", ""

    code = match.group(3)
    if code.lower() == PUSH_CODE:
        code = PUSH_CODE
    return match.group(1), code


def is_push_code(code: str) -> bool:
    return code.lower() == PUSH_CODE


def is_totp_code(code: str) -> bool:
    return _TOTP_CODE.fullmatch(code or "") is not None
