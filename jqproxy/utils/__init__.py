from urllib.parse import urlsplit, urlunsplit


def redact_url(url: str) -> str:
    """Hide the password of any userinfo embedded in a URL."""
    try:
        parts = urlsplit(url)
        password = parts.password
    except ValueError:
        return url
    if password is None:
        return url
    userinfo, _, hostinfo = parts.netloc.rpartition("@")
    user = userinfo.split(":", 1)[0]
    return urlunsplit(parts._replace(netloc=f"{user}:****@{hostinfo}"))


def redact_text(text: str, url: str) -> str:
    """Replace every occurrence of url in text with its redacted form."""
    redacted = redact_url(url)
    if redacted == url:
        return text
    return text.replace(url, redacted)
