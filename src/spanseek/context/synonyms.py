"""
Query Expander - Bridges vocabulary gaps between questions and identifiers.

Questions say "where is the user fetched", code says getUser/loadUser.
A fixed table of domain synonyms maps each canonical concept to the words
that tend to express it in source code.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Tuple

from .tokenizer import ngrams, stem, tokenize

DEFAULT_SYNONYMS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    # CRUD and data movement
    "create": ("create", "add", "insert", "new", "make", "generate", "build"),
    "read": ("read", "get", "fetch", "retrieve", "load", "find", "query", "select"),
    "update": ("update", "modify", "change", "edit", "set", "patch", "alter"),
    "delete": ("delete", "remove", "destroy", "clear", "erase", "drop"),
    "send": ("send", "emit", "dispatch", "publish", "broadcast", "push", "post"),
    "receive": ("receive", "listen", "subscribe", "consume", "pull", "handle"),
    "validate": ("validate", "verify", "check", "ensure", "confirm", "test"),
    "parse": ("parse", "decode", "deserialize", "extract", "interpret"),
    "format": ("format", "serialize", "encode", "stringify", "convert"),
    # Errors and control flow
    "error": ("error", "err", "exception", "fault", "failure", "problem"),
    "handle": ("handle", "catch", "process", "manage", "deal"),
    "throw": ("throw", "raise", "reject", "fail"),
    "retry": ("retry", "attempt", "repeat", "again", "redo"),
    "async": ("async", "asynchronous", "concurrent", "parallel"),
    "wait": ("wait", "await", "delay", "sleep", "pause", "timeout"),
    "callback": ("callback", "handler", "listener", "hook"),
    "promise": ("promise", "future", "deferred", "resolve"),
    # Lifecycle
    "init": ("init", "initialize", "setup", "start", "begin", "boot", "launch"),
    "stop": ("stop", "shutdown", "close", "end", "terminate", "exit", "kill"),
    "reset": ("reset", "restart", "reload", "refresh", "restore"),
    "save": ("save", "store", "persist", "write", "cache", "keep"),
    "load": ("load", "restore", "retrieve", "fetch", "read"),
    "cache": ("cache", "memoize", "buffer", "store"),
    "expire": ("expire", "ttl", "timeout", "invalidate", "stale"),
    # Collections
    "add": ("add", "push", "append", "insert", "enqueue"),
    "remove": ("remove", "pop", "shift", "dequeue", "delete", "destroy", "clear", "erase"),
    "filter": ("filter", "search", "find", "query", "match", "where"),
    "sort": ("sort", "order", "rank", "arrange"),
    "map": ("map", "transform", "convert", "project"),
    "count": ("count", "total", "sum", "number", "size", "length"),
    "calculate": ("calculate", "compute", "derive", "evaluate"),
    "rate": ("rate", "ratio", "percentage", "percent", "fraction"),
    # Observability
    "log": ("log", "print", "output", "write", "record", "trace"),
    "debug": ("debug", "trace", "inspect", "dump"),
    "monitor": ("monitor", "track", "watch", "observe"),
    "metrics": ("metrics", "stats", "statistics", "measure", "telemetry"),
    "health": ("health", "status", "alive", "ping", "heartbeat", "check"),
    # Security
    "auth": ("auth", "authenticate", "authorization", "login", "signin", "bearer"),
    "token": ("token", "jwt", "key", "credential", "secret"),
    "permission": ("permission", "role", "access", "privilege", "grant"),
    "password": ("password", "passwd", "pwd", "credential", "secret", "hash"),
    "login": ("login", "signin", "authenticate", "auth", "session"),
    "logout": ("logout", "signout", "unauthenticate", "session"),
    "register": ("register", "signup", "enroll", "add", "create", "user"),
    "access": ("access", "view", "see", "read", "authorization", "permission"),
    # HTTP and services
    "request": ("request", "req", "call", "invoke", "http"),
    "response": ("response", "res", "reply", "result"),
    "route": ("route", "path", "endpoint", "url", "uri"),
    "endpoint": ("endpoint", "url", "uri", "path", "route", "address"),
    "middleware": ("middleware", "interceptor", "filter", "handler"),
    "get": ("get", "fetch", "retrieve", "read", "find", "show"),
    "post": ("post", "create", "add", "insert", "new", "submit"),
    "put": ("put", "update", "modify", "change", "edit", "replace"),
    "patch": ("patch", "update", "modify", "partial"),
    "crud": ("crud", "create", "read", "update", "delete", "operation"),
    "search": ("search", "find", "query", "lookup", "filter"),
    "list": ("list", "all", "index", "collection", "array", "get"),
    "single": ("single", "one", "specific", "individual", "id", "detail"),
    # Storage and infrastructure
    "database": ("database", "db", "store", "storage", "repository"),
    "connection": ("connection", "conn", "link", "pool"),
    "event": ("event", "signal", "trigger", "fire"),
    "emit": ("emit", "fire", "trigger", "dispatch", "publish"),
    "listen": ("listen", "subscribe", "on", "bind", "attach"),
    "config": ("config", "configuration", "settings", "options", "preferences"),
    "file": ("file", "document", "path", "directory", "folder"),
    "schedule": ("schedule", "cron", "timer", "interval", "periodic"),
    "queue": ("queue", "job", "task", "worker", "background"),
    "status": ("status", "state", "condition", "health"),
    "limit": ("limit", "max", "maximum", "cap", "threshold", "bound"),
    "clean": ("clean", "cleanup", "purge", "gc", "garbage", "sweep"),
    "session": ("session", "user", "context"),
    "rotate": ("rotate", "roll", "cycle", "archive"),
    "execute": ("execute", "run", "invoke", "call", "perform", "do"),
    "select": ("select", "choose", "pick", "get", "find"),
    "acquire": ("acquire", "obtain", "get", "lock", "take"),
    "release": ("release", "free", "unlock", "drop", "let"),
    "success": ("success", "ok", "pass", "complete", "done", "finish"),
    "fail": ("fail", "error", "failure", "crash", "abort"),
    "refill": ("refill", "replenish", "restore", "reset", "reload"),
    "balance": ("balance", "distribute", "spread", "allocate", "share"),
    "round": ("round", "cycle", "rotate", "circular", "robin"),
    "lock": ("lock", "mutex", "semaphore", "synchronize", "block"),
    "priority": ("priority", "weight", "importance", "rank", "order"),
    "disk": ("disk", "storage", "filesystem", "drive", "volume"),
    "usage": ("usage", "utilization", "consumption", "use"),
    "email": ("email", "mail", "address", "contact"),
    "regex": ("regex", "regexp", "pattern", "match", "expression"),
    "sequence": ("sequence", "order", "chain", "pipeline", "flow"),
    "precision": ("precision", "float", "decimal", "round", "accurate"),
    "sensitive": ("sensitive", "case", "match", "exact", "strict"),
    "calculation": ("calculation", "compute", "calculate", "sum", "total", "reduce"),
    # Commerce
    "cart": ("cart", "basket", "bag", "shopping", "item"),
    "order": ("order", "purchase", "checkout", "buy", "transaction"),
    "product": ("product", "item", "goods", "merchandise", "inventory"),
    "user": ("user", "account", "profile", "member", "customer"),
    "admin": ("admin", "administrator", "superuser", "root", "management"),
    "upload": ("upload", "file", "image", "attachment", "media"),
    "stock": ("stock", "inventory", "quantity", "available", "supply"),
    "price": ("price", "cost", "amount", "total", "value"),
    "shipping": ("shipping", "delivery", "ship", "address", "location"),
    "payment": ("payment", "pay", "charge", "billing", "transaction"),
})


@dataclass(frozen=True)
class ParsedQuery:
    """All artifacts derived from a query string."""
    text: str
    raw_tokens: Tuple[str, ...]
    tokens: Tuple[str, ...]
    expanded_tokens: FrozenSet[str]
    # Stemmed query token -> tokens it pulled in through the synonym table
    expansions: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    bigrams: Tuple[str, ...] = ()
    trigrams: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.tokens

    @property
    def token_set(self) -> FrozenSet[str]:
        return frozenset(self.tokens)

    @property
    def raw_token_set(self) -> FrozenSet[str]:
        return frozenset(self.raw_tokens)

    @property
    def synonym_tokens(self) -> FrozenSet[str]:
        """Expanded tokens that are not themselves query tokens."""
        return self.expanded_tokens - self.token_set


class QueryExpander:
    """
    Expands query tokens with a synonym table.

    A query token triggers a group when it equals the group's key, one of
    its synonyms, or the stem of one of its synonyms. The whole group (plus
    stems) is then added.
    """

    def __init__(self, synonyms: Mapping[str, Tuple[str, ...]] = DEFAULT_SYNONYMS):
        self._groups: List[Tuple[str, FrozenSet[str], FrozenSet[str]]] = []
        for key, words in synonyms.items():
            triggers = frozenset(words) | frozenset(stem(w) for w in words)
            members = triggers | {key}
            self._groups.append((key, triggers, frozenset(members)))

    def expand_token(self, token: str) -> FrozenSet[str]:
        """Every synonym-group member reachable from a single stemmed token."""
        result = set()
        for key, triggers, members in self._groups:
            if token == key or token in triggers:
                result |= members
        return frozenset(result)

    def expand(self, tokens: List[str]) -> FrozenSet[str]:
        """Return tokens plus all synonym expansions."""
        expanded = set(tokens)
        for token in tokens:
            expanded |= self.expand_token(token)
        return frozenset(expanded)

    def parse(self, query: str) -> ParsedQuery:
        """Derive raw/stemmed tokens, expansions and phrases for a query."""
        raw_tokens = tokenize(query, apply_stem=False)
        tokens = tokenize(query, apply_stem=True)

        expansions: Dict[str, FrozenSet[str]] = {}
        for token in tokens:
            if token not in expansions:
                expansions[token] = self.expand_token(token)

        expanded = set(tokens)
        for group in expansions.values():
            expanded |= group

        return ParsedQuery(
            text=query,
            raw_tokens=tuple(raw_tokens),
            tokens=tuple(tokens),
            expanded_tokens=frozenset(expanded),
            expansions=MappingProxyType(expansions),
            bigrams=tuple(ngrams(raw_tokens, 2)),
            trigrams=tuple(ngrams(raw_tokens, 3)),
        )
