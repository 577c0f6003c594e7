"""Capability surface exposed to transform scripts.

Transforms run with a curated ``__builtins__`` and a handful of
namespaces built from standard-library helpers. Modules are never handed
over whole: each namespace lists the callables and constants a transform
may reach, so module attributes such as ``__loader__`` or ``sys`` stay out
of sight.

This is an allow-list, not an isolation boundary. The static analyzer
rejects the usual escape idioms before a script gets here.
"""

import base64
import builtins
import csv
import datetime
import hashlib
import hmac
import html
import json
import locale
import math
import re
import secrets
import string
import textwrap
import unicodedata
import uuid
from types import SimpleNamespace
from typing import Any
from urllib import parse as urlparse

SAFE_BUILTINS = (
    # Types and constructors
    "bool",
    "bytearray",
    "bytes",
    "complex",
    "dict",
    "float",
    "frozenset",
    "int",
    "list",
    "range",
    "set",
    "slice",
    "str",
    "tuple",
    # Functions
    "abs",
    "all",
    "any",
    "ascii",
    "bin",
    "callable",
    "chr",
    "divmod",
    "enumerate",
    "filter",
    "format",
    "hash",
    "hex",
    "isinstance",
    "issubclass",
    "iter",
    "len",
    "map",
    "max",
    "min",
    "next",
    "oct",
    "ord",
    "pow",
    "repr",
    "reversed",
    "round",
    "sorted",
    "sum",
    "zip",
    # Exceptions
    "ArithmeticError",
    "Exception",
    "IndexError",
    "KeyError",
    "LookupError",
    "NotImplementedError",
    "OverflowError",
    "RuntimeError",
    "StopIteration",
    "TypeError",
    "UnicodeDecodeError",
    "UnicodeEncodeError",
    "UnicodeError",
    "ValueError",
    "ZeroDivisionError",
)


def _namespace(source: Any, names: list[str]) -> SimpleNamespace:
    return SimpleNamespace(**{name: getattr(source, name) for name in names})


def build_builtins() -> dict[str, Any]:
    """Return the ``__builtins__`` mapping given to every transform."""
    return {name: getattr(builtins, name) for name in SAFE_BUILTINS}


def build_capabilities() -> dict[str, Any]:
    """Return the named helpers a transform can reach as globals."""
    return {
        "math": _namespace(math, [n for n in dir(math) if not n.startswith("_")]),
        "json": _namespace(json, ["dumps", "loads", "JSONDecodeError"]),
        "re": _namespace(
            re,
            [
                "compile",
                "escape",
                "findall",
                "finditer",
                "fullmatch",
                "match",
                "search",
                "split",
                "sub",
                "subn",
                "error",
                "ASCII",
                "DOTALL",
                "IGNORECASE",
                "MULTILINE",
                "VERBOSE",
                "A",
                "I",
                "M",
                "S",
                "X",
            ],
        ),
        "datetime": _namespace(
            datetime, ["date", "datetime", "time", "timedelta", "timezone"]
        ),
        "base64": _namespace(
            base64,
            [
                "b16decode",
                "b16encode",
                "b32decode",
                "b32encode",
                "b64decode",
                "b64encode",
                "urlsafe_b64decode",
                "urlsafe_b64encode",
            ],
        ),
        "hashlib": _namespace(
            hashlib,
            [
                "md5",
                "new",
                "sha1",
                "sha224",
                "sha256",
                "sha384",
                "sha512",
                "sha3_256",
                "sha3_512",
                "blake2b",
                "blake2s",
            ],
        ),
        "hmac": _namespace(hmac, ["compare_digest", "digest", "new"]),
        "uuid": _namespace(uuid, ["UUID", "uuid4"]),
        "secrets": _namespace(
            secrets, ["choice", "randbelow", "token_bytes", "token_hex", "token_urlsafe"]
        ),
        "uri": _namespace(
            urlparse,
            [
                "parse_qs",
                "parse_qsl",
                "quote",
                "quote_plus",
                "unquote",
                "unquote_plus",
                "urlencode",
                "urlsplit",
                "urlunsplit",
            ],
        ),
        "html": _namespace(html, ["escape", "unescape"]),
        "string": _namespace(
            string,
            [
                "ascii_letters",
                "ascii_lowercase",
                "ascii_uppercase",
                "capwords",
                "digits",
                "hexdigits",
                "octdigits",
                "printable",
                "punctuation",
                "whitespace",
            ],
        ),
        "textwrap": _namespace(textwrap, ["dedent", "fill", "indent", "shorten", "wrap"]),
        "unicodedata": _namespace(
            unicodedata, ["category", "lookup", "name", "normalize"]
        ),
        "csv": _namespace(csv, ["DictReader", "reader"]),
        "collate": SimpleNamespace(compare=locale.strcoll, key=locale.strxfrm),
    }


def transform_globals() -> dict[str, Any]:
    """Return a fresh globals mapping for one transform execution.

    The mapping holds only the curated builtins and capability
    namespaces, rebuilt per call so one script cannot tamper with the
    helpers the next one sees. Nothing from the calling module is
    reachable.
    """
    namespace: dict[str, Any] = {
        "__builtins__": build_builtins(),
        "__name__": "transform",
    }
    namespace.update(build_capabilities())
    return namespace


def capability_names() -> list[str]:
    """Names a transform can use besides builtins, for prompts and docs."""
    return sorted(build_capabilities())
