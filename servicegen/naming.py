"""Turn arbitrary source strings into TypeScript identifiers.

Source names come from $ref fragments, schema titles, operation ids, tags and
path segments. Names produced by C# toolchains carry extra noise that is
stripped here:

  System.Collections.Generic.List`1[[Acme.Pet, Acme]]  -> List`1_Pet -> List1Pet
  Acme.Models.Pet, Acme, PublicKeyToken=abc123         -> Pet_abc123 -> PetAbc123

Examples:
  resolve_type_name("pet-status")  -> "petStatus"
  resolve_type_name("delete")      -> "__openAPI__delete"
  resolve_type_name("123")         -> "Pinyin_123"
  resolve_type_name("用户")         -> "yonghu"

Nothing here tracks uniqueness across calls. Two source names that resolve to
the same identifier both keep it.
"""

from __future__ import annotations

import re
import warnings

from pypinyin import lazy_pinyin

from .errors import NamingWarning

RESERVED_PREFIX = "__openAPI__"
FALLBACK_PREFIX = "Pinyin_"

# ECMAScript keywords, future reserved words and literals
RESERVED_WORDS = frozenset({
    "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "export",
    "extends", "false", "finally", "for", "function", "if", "implements",
    "import", "in", "instanceof", "interface", "let", "new", "null",
    "package", "private", "protected", "public", "return", "static",
    "super", "switch", "this", "throw", "true", "try", "typeof", "var",
    "void", "while", "with", "yield",
})

_GENERIC_ARGS = re.compile(r"\[\[.+\]\]")
_SEPARATOR = re.compile(r"[-_ ](\w)", re.ASCII)
_SEPARATOR_OR_DOT = re.compile(r"[-_ .](\w)", re.ASCII)
_ILLEGAL = re.compile(r"[^\w\s\u4e00-\u9fa5]", re.ASCII)
_WIDE = re.compile(r"[\u3220-\ufa29]")
_PATH_VARIABLE = re.compile(r"\{(.+)\}|:(.+)")
_WORD = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+|[^\W\d_a-zA-Z]+")


def is_reserved(name: str) -> bool:
    return name in RESERVED_WORDS


def upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def _upper_match(match: re.Match) -> str:
    return match.group(1).upper()


def strip_dot(text: str) -> str:
    """Drop ``-``, ``_``, space and ``.`` separators, upper-casing what follows."""
    return _SEPARATOR_OR_DOT.sub(_upper_match, text)


def replace_dot(text: str) -> str:
    """Like ``final_file_name``, but dots become underscores first."""
    return _SEPARATOR.sub(_upper_match, text.replace(".", "_"))


def final_file_name(text: str) -> str:
    return _SEPARATOR.sub(_upper_match, text)


def camel_case(text: str) -> str:
    """Lower camel case over the words of ``text``.

    Words split on non-alphanumerics, case changes and digit runs, so
    ``"Pet Store_v2"`` becomes ``"petStoreV2"`` and ``"HTTPServer"`` becomes
    ``"httpServer"``.
    """
    words: list[str] = []
    for chunk in re.split(r"[\W_]+", text):
        words.extend(_WORD.findall(chunk))
    if not words:
        return ""
    return words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])


def type_last_name(type_name: str) -> str:
    """Reduce a possibly assembly-qualified, generic type name to its short form."""
    type_name = type_name or ""
    children = _GENERIC_ARGS.search(type_name)
    if children:
        generic = children.group(0)
        outer = type_last_name(type_name.replace(generic, "", 1))
        inner = type_last_name(generic[2:-2])
        return f"{outer}_{inner}"

    token = ""
    if "PublicKeyToken=" in type_name:
        token = type_name.split("PublicKeyToken=")[1].replace("null", "", 1)
    first = type_name.split(",")[0]
    last = first.split("/")[-1].split(".")[-1]
    if last.endswith("[]"):
        last = last[:-2] + "Array"

    # System types are the same everywhere, no token needed
    if not token or first.startswith("System."):
        return last
    return f"{last}_{token}"


def resolve_type_name(type_name: str) -> str:
    """Sanitize ``type_name`` into a valid identifier."""
    if is_reserved(type_name):
        return f"{RESERVED_PREFIX}{type_name}"

    name = _SEPARATOR.sub(_upper_match, type_last_name(type_name))
    name = _ILLEGAL.sub("", name)

    if name in ("", "_") or name[0].isdigit():
        warnings.warn(
            f"Name {type_name!r} does not start with a letter, using {FALLBACK_PREFIX}{name}."
            " Consider renaming it in the source document.",
            NamingWarning,
            stacklevel=2,
        )
        return f"{FALLBACK_PREFIX}{name}"

    if not _WIDE.search(name):
        return name

    transliterated = "".join(lazy_pinyin(re.sub(r" +", "", name)))
    warnings.warn(
        f"Name {type_name!r} transliterated to {transliterated!r}; the result may not be unique.",
        NamingWarning,
        stacklevel=2,
    )
    return transliterated


def resolve_function_name(function_name: str, method: str) -> str:
    """Keep an operation id usable as a function name."""
    if is_reserved(function_name):
        return f"{function_name}Using{method.upper()}"
    return function_name


def base_prefix(paths: list[str]) -> str:
    """Return the leading path segments shared by every path, slash-terminated.

    Segments are compared column by column; collection stops at the first
    column holding more than one distinct value.
    """
    columns: list[list[str]] = []
    for path in paths:
        for index, segment in enumerate(path.split("/")):
            if len(columns) <= index:
                columns.append([])
            columns[index].append(segment)

    shared: list[str] = []
    for column in columns:
        distinct = list(dict.fromkeys(column))
        if len(distinct) != 1:
            break
        shared.append(distinct[0])
    return "/".join(shared) + "/"


def default_function_name(path: str, prefix: str) -> str:
    """Build the title-cased part of a function name from a path.

    ``/pets/{petId}/toys`` -> ``PetsByPetIdToys``
    """
    parts = []
    for segment in path.replace(prefix, "", 1).split("/"):
        if not segment:
            continue
        variable = _PATH_VARIABLE.fullmatch(segment)
        if variable:
            name = variable.group(1) or variable.group(2)
            parts.append("By" + upper_first(resolve_type_name(name)))
        else:
            parts.append(upper_first(resolve_type_name(segment)))
    return "".join(parts)
