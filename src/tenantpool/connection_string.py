from __future__ import annotations

from collections.abc import Iterator

CATALOG_KEYWORDS: frozenset[str] = frozenset({"initial catalog", "database"})
SERVER_KEYWORDS: frozenset[str] = frozenset(
    {"server", "data source", "address", "addr", "network address"}
)
DEFAULT_SQL_PORT = 1433


class ConnectionString:
    """Keyword/value connection string as used by SQL Server clients.

    Keys compare case-insensitively, original spelling and order are kept
    when the string is rendered again. Values wrapped in ``{...}`` may contain
    ``;`` and ``}}`` stands for a literal closing brace.
    """

    def __init__(
        self,
        pairs: list[tuple[str, str]],
        *,
        braced: frozenset[str] = frozenset(),
    ) -> None:
        self._pairs = pairs
        self._braced = braced

    @classmethod
    def parse(cls, raw: str) -> ConnectionString:
        pairs: list[tuple[str, str]] = []
        braced: set[str] = set()
        for key, value, was_braced in _iter_pairs(raw):
            pairs.append((key, value))
            if was_braced:
                braced.add(key.lower())
        return cls(pairs, braced=frozenset(braced))

    def get(self, keyword: str) -> str | None:
        wanted = keyword.lower()
        for key, value in self._pairs:
            if key.lower() == wanted:
                return value
        return None

    def _find_any(self, keywords: frozenset[str]) -> str | None:
        for key, value in self._pairs:
            if key.lower() in keywords:
                return value
        return None

    @property
    def catalog(self) -> str | None:
        return self._find_any(CATALOG_KEYWORDS)

    @property
    def host(self) -> str | None:
        server = self._find_any(SERVER_KEYWORDS)
        if server is None:
            return None
        host = server.strip()
        if host.lower().startswith("tcp:"):
            host = host[len("tcp:"):]
        host = host.split(",", 1)[0].strip()
        return host or None

    def with_catalog(self, database_name: str) -> ConnectionString:
        replaced = False
        pairs: list[tuple[str, str]] = []
        for key, value in self._pairs:
            if key.lower() in CATALOG_KEYWORDS:
                if replaced:
                    continue
                pairs.append((key, database_name))
                replaced = True
                continue
            pairs.append((key, value))
        if not replaced:
            pairs.append(("Database", database_name))
        return ConnectionString(pairs, braced=self._braced - CATALOG_KEYWORDS)

    def render(self) -> str:
        return "".join(
            f"{key}={_quote(value, force=key.lower() in self._braced)};"
            for key, value in self._pairs
        )

    def __str__(self) -> str:
        return self.render()


def _iter_pairs(raw: str) -> Iterator[tuple[str, str, bool]]:
    index = 0
    length = len(raw)
    while index < length:
        while index < length and raw[index] in "; \t\r\n":
            index += 1
        if index >= length:
            return
        equals = raw.find("=", index)
        if equals == -1:
            raise ValueError(f"Malformed connection string segment: {raw[index:]!r}")
        key = raw[index:equals].strip()
        if key == "":
            raise ValueError("Connection string contains an empty keyword.")
        index = equals + 1
        while index < length and raw[index] in " \t":
            index += 1
        braced = index < length and raw[index] == "{"
        if braced:
            value, index = _read_braced(raw, index + 1)
            end = raw.find(";", index)
            index = length if end == -1 else end + 1
        else:
            end = raw.find(";", index)
            if end == -1:
                value, index = raw[index:].strip(), length
            else:
                value, index = raw[index:end].strip(), end + 1
        yield key, value, braced


def _read_braced(raw: str, index: int) -> tuple[str, int]:
    chars: list[str] = []
    while index < len(raw):
        char = raw[index]
        if char == "}":
            if raw.startswith("}}", index):
                chars.append("}")
                index += 2
                continue
            return "".join(chars), index + 1
        chars.append(char)
        index += 1
    raise ValueError("Connection string has an unterminated '{' value.")


def _quote(value: str, *, force: bool = False) -> str:
    if force or ";" in value or value.startswith("{") or value != value.strip():
        return "{" + value.replace("}", "}}") + "}"
    return value


__all__ = ["ConnectionString", "DEFAULT_SQL_PORT"]
