"""
FastAPI dependencies for per-request language selection
"""
from typing import Any, Callable, List, Optional

from fastapi import Header, Query


def parse_accept_language(header: Optional[str]) -> List[str]:
    """
    Language tags of an Accept-Language header, best first.

    Args:
        header: e.g. 'fr-CH, fr;q=0.9, en;q=0.8, *;q=0.5'

    Returns:
        Tags ordered by quality ('*' dropped)
    """
    if not header:
        return []

    weighted = []
    for position, part in enumerate(header.split(",")):
        pieces = [piece.strip() for piece in part.split(";")]
        tag = pieces[0]
        if not tag or tag == "*":
            continue
        quality = 1.0
        for param in pieces[1:]:
            if param.startswith("q="):
                try:
                    quality = float(param[2:])
                except ValueError:
                    quality = 0.0
        if quality > 0:
            weighted.append((-quality, position, tag))

    return [tag for _, _, tag in sorted(weighted)]


def language_dependency(i18n) -> Callable[..., Any]:
    """
    Build a dependency resolving the language override of a request.

    Priority: `lang` query parameter > Accept-Language header > default language.
    """

    def get_request_language(
        lang: Optional[str] = Query(None),
        accept_language: Optional[str] = Header(None),
    ) -> Any:
        if lang:
            return i18n.detect_language(lang)
        for tag in parse_accept_language(accept_language):
            matched = i18n.match_language(tag)
            if matched is not None:
                return matched
        return i18n.options.default_language

    return get_request_language
