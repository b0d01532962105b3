"""
Include/exclude matching for archive members
"""
import fnmatch
import posixpath
from typing import Iterable, Optional


__all__ = ['is_allowed', 'matches_anchor', 'matches_extension', 'normalize']


def normalize(path) -> str:
    posix = posixpath.normpath(str(path).replace('\\', '/'))
    if posix.startswith('./'):
        posix = posix[2:]
    return posix


def matches_anchor(path, anchor: str) -> bool:
    """
    True if `path` sits at or under `anchor`.

    The anchor is either a leading path prefix (matched on component
    boundaries) or a glob pattern anchored at the start of the path.
    """
    if not anchor:
        return False
    path = normalize(path)
    prefix = normalize(anchor).rstrip('/')
    if path == prefix or path.startswith(prefix + '/'):
        return True
    return (fnmatch.fnmatchcase(path, anchor) or
            fnmatch.fnmatchcase(path, anchor.rstrip('/') + '/*'))


def matches_extension(path, extensions: Iterable[str]) -> bool:
    name = posixpath.basename(normalize(path))
    for ext in extensions:
        ext = ext.lstrip('.')
        if ext and name.endswith('.' + ext):
            return True
    return False


def is_allowed(rule, path, arcname: Optional[str] = None) -> bool:
    """
    Decide whether `path` goes into the archive under `rule`.

    Exclusion wins over inclusion, and an anchor wins over an extension:
    exclude anchor, include anchor, exclude extension, include extension.
    Anchors are tried against both the path on disk and, when given, the
    entry name inside the archive.
    """
    locations = [path] if arcname is None else [path, arcname]
    if any(matches_anchor(location, rule.exclude_anchor) for location in locations):
        return False
    if any(matches_anchor(location, rule.include_anchor) for location in locations):
        return True
    if matches_extension(path, rule.exclude_extensions):
        return False
    if rule.include_extensions:
        return matches_extension(path, rule.include_extensions)
    # An include anchor was given and didn't match
    return not rule.include_anchor
