"""Helpers for `username@domain` logins."""


def get_domain_from_login(login: str) -> str:
    if "@" not in login:
        raise ValueError(f"Login is not of the form username@domain: {login!r}")
    return login.rsplit("@", 1)[1].lower()


def get_username_from_login(login: str) -> str:
    if "@" not in login:
        raise ValueError(f"Login is not of the form username@domain: {login!r}")
    return login.rsplit("@", 1)[0]
