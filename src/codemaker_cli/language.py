"""Mapping between file extensions, language tags and test file naming."""

from __future__ import annotations

from codemaker_cli.errors import UnsupportedLanguageError

_FILE_EXTENSIONS: dict[str, str] = {
    ".java": "JAVA",
    ".js": "JAVASCRIPT",
    ".kt": "KOTLIN",
}

_TEST_FILE_SUFFIXES: dict[str, str] = {
    "JAVA": "Test.java",
    "JAVASCRIPT": "_test.js",
    "KOTLIN": "Test.kt",
}

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(sorted(set(_FILE_EXTENSIONS.values())))


def resolve_language(extension: str) -> str:
    """Return the language tag for an extension such as ``.java``.

    The lookup is exact and case-sensitive, including the leading dot.
    """

    try:
        return _FILE_EXTENSIONS[extension]
    except KeyError:
        raise UnsupportedLanguageError(
            f"The file extension {extension!r} is not supported",
        ) from None


def unit_test_suffix(language: str) -> str:
    """Return the suffix that replaces the extension of a generated test file."""

    try:
        return _TEST_FILE_SUFFIXES[language]
    except KeyError:
        raise UnsupportedLanguageError(f"The language {language!r} is not supported") from None


def normalize_language(value: str) -> str:
    """Map a user supplied language name (any case) to its registered tag."""

    tag = value.strip().upper()
    if tag not in SUPPORTED_LANGUAGES:
        raise UnsupportedLanguageError(f"The language {value!r} is not supported")
    return tag
