"""Author name masking applied before comments are persisted."""


def mask_username(username: str) -> str:
    """Keep the first character and star out the rest ("Alice" -> "A****")"""
    if not username:
        return ""
    return username[0] + "*" * (len(username) - 1)
