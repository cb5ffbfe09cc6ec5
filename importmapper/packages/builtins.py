"""Platform builtin module names served by the builtins shim package."""

from __future__ import annotations

EMPTY_MODULE = "@empty"

NODE_BUILTINS = frozenset(
    {
        "assert",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "dns",
        "domain",
        "events",
        "fs",
        "http",
        "https",
        "module",
        "net",
        "os",
        "path",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "string_decoder",
        "sys",
        "timers",
        "tls",
        "tty",
        "url",
        "util",
        "vm",
        "zlib",
    }
)

# No browser shim exists for these; they map to the empty module.
BROWSER_UNIMPLEMENTED = frozenset(
    {
        "child_process",
        "cluster",
        "dgram",
        "dns",
        "fs",
        "module",
        "net",
        "readline",
        "repl",
        "tls",
    }
)


def is_builtin(name: str) -> bool:
    return name in NODE_BUILTINS or name == EMPTY_MODULE


def shim_file(name: str, browser: bool) -> str:
    """File name inside the shim package that implements ``name``."""
    if name == EMPTY_MODULE or (browser and name in BROWSER_UNIMPLEMENTED):
        return f"{EMPTY_MODULE}.js"
    return f"{name}.js"


__all__ = [
    "BROWSER_UNIMPLEMENTED",
    "EMPTY_MODULE",
    "NODE_BUILTINS",
    "is_builtin",
    "shim_file",
]
