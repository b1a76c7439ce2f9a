from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_POSTGRES_SCHEMES = {"postgres", "postgresql", "postgresql+psycopg", "postgresql+psycopg2"}


def normalize_database_url(url: str) -> str:
    """Point Postgres URLs at the asyncpg driver.

    asyncpg does not understand libpq's ``sslmode``; it is translated to the
    ``ssl`` query parameter asyncpg accepts.
    """
    url = (url or "").strip()
    if not url:
        return url

    parts = urlsplit(url)
    scheme = parts.scheme
    if scheme in _POSTGRES_SCHEMES:
        scheme = "postgresql+asyncpg"
    if scheme != "postgresql+asyncpg":
        return url

    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    sslmode_key = next((key for key in query if key.lower() == "sslmode"), None)
    if sslmode_key is not None:
        sslmode = query.pop(sslmode_key).lower().strip()
        if "ssl" not in query:
            query["ssl"] = "disable" if sslmode in {"disable", "allow"} else sslmode

    new_query = urlencode(query, doseq=True)
    return urlunsplit((scheme, parts.netloc, parts.path, new_query, parts.fragment))
