"""
apimock Route Path Matcher

Matches concrete request paths against route patterns.

Pattern syntax:
- literal segments, compared exactly (case-sensitive)
- :name binds one path segment verbatim
- * and ** match everything that remains (at least one segment)

Matching never raises: the result is either a dict of bound parameters
(possibly empty) or None.
"""

from functools import lru_cache
from typing import Dict, Optional, Tuple


WILDCARDS = ('*', '**')


@lru_cache(maxsize=1024)
def split_pattern(pattern: str) -> Tuple[Tuple[str, ...], bool]:
    """
    Split a route pattern into segments.

    Returns:
        (segments, has_wildcard)
    """
    segments = tuple(s for s in _ensure_leading_slash(pattern).split('/') if s)
    return segments, any(s in WILDCARDS for s in segments)


def _ensure_leading_slash(path: str) -> str:
    return path if path.startswith('/') else '/' + path


def strip_base_path(request_path: str, base_path: str) -> str:
    """Remove base_path from the front of request_path when it is a literal prefix."""
    if base_path and request_path.startswith(base_path):
        return request_path[len(base_path):]
    return request_path


def match_path(pattern: str, request_path: str, base_path: str = '') -> Optional[Dict[str, str]]:
    """
    Match request_path against a route pattern.

    Args:
        pattern: Route pattern, e.g. '/users/:id' or '/files/*'
        request_path: Path of the incoming request (no query string)
        base_path: Config base path stripped from request_path first

    Returns:
        Bound parameters, or None if the path does not match

    Example:
        match_path('/users/:id', '/api/users/42', '/api')  # {'id': '42'}
    """
    pattern_segments, has_wildcard = split_pattern(pattern)
    path = _ensure_leading_slash(strip_base_path(request_path, base_path))
    path_segments = [s for s in path.split('/') if s]

    if not has_wildcard and len(pattern_segments) != len(path_segments):
        return None

    params: Dict[str, str] = {}
    index = 0

    for segment in pattern_segments:
        if index >= len(path_segments):
            return None

        if segment in WILDCARDS:
            return params
        elif segment.startswith(':'):
            params[segment[1:]] = path_segments[index]
        elif segment != path_segments[index]:
            return None
        index += 1

    if index < len(path_segments):
        return None

    return params


class RoutePathMatcher:
    """
    Route pattern matcher used by the registry during resolution.

    Keeps hit/miss counters so the server can report how much work
    resolution is doing.

    Example:
        matcher = RoutePathMatcher()
        params = matcher.match('/users/:id', '/users/42')
        if params is not None:
            print(params['id'])
    """

    def __init__(self):
        self.matches = 0
        self.misses = 0

    def match(self, pattern: str, request_path: str, base_path: str = '') -> Optional[Dict[str, str]]:
        """Match request_path against pattern; see match_path()."""
        params = match_path(pattern, request_path, base_path)
        if params is None:
            self.misses += 1
        else:
            self.matches += 1
        return params

    def stats(self) -> Dict[str, int]:
        return {
            'matches': self.matches,
            'misses': self.misses,
            'pattern_cache_size': split_pattern.cache_info().currsize
        }
