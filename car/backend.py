"""
Tar and zip writers used by the archive executor
"""
import os
import pathlib
import posixpath
import tarfile
import zipfile
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .filters import normalize
from .models import AttributeOverrides, CompressionCodec, FilterRule


__all__ = ['ArchiveBackend', 'Member', 'TarOptions', 'ZipOptions', 'collect_members']

_SUFFIX_CODECS: Tuple[Tuple[str, CompressionCodec], ...] = (
    ('.tar.gz', CompressionCodec.GZIP),
    ('.tgz', CompressionCodec.GZIP),
    ('.tar.bz2', CompressionCodec.BZIP2),
    ('.tbz2', CompressionCodec.BZIP2),
    ('.tbz', CompressionCodec.BZIP2),
    ('.tar.xz', CompressionCodec.XZ),
    ('.txz', CompressionCodec.XZ),
)


class Member(BaseModel):
    """
    A file on disk and the name it gets inside the archive
    """
    model_config = ConfigDict(frozen=True)

    path: pathlib.Path
    arcname: str


class TarOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    destination: pathlib.Path
    sources: Tuple[pathlib.Path, ...]
    codec: Optional[CompressionCodec] = None
    filter: FilterRule = FilterRule()
    attributes: AttributeOverrides = AttributeOverrides()
    use_full_path: bool = False


class ZipOptions(BaseModel):
    """
    Input for the zip writer.

    When `members` is given it is written as-is and `sources` is only
    informational; the zip writer has no filter or attribute support.
    """
    model_config = ConfigDict(frozen=True)

    destination: pathlib.Path
    sources: Tuple[pathlib.Path, ...]
    use_full_path: bool = False
    members: Optional[Tuple[Member, ...]] = None


def _full_arcname(path: str) -> str:
    return normalize(path).lstrip('/')


def _walk(directory: pathlib.Path, follow_dir_links: bool,
          ancestors: FrozenSet[str] = frozenset()) -> Iterator[pathlib.Path]:
    """
    Yield the entries under `directory` depth-first, sorted by name.

    A symlink to a directory is yielded as an entry of its own, unless
    `follow_dir_links` is set, in which case the directory it points at is
    walked in its place.
    """
    real = os.path.realpath(directory)
    if real in ancestors:
        raise OSError(f'Symlink loop: {directory}')
    ancestors = ancestors | {real}

    with os.scandir(directory) as scan:
        entries = sorted(scan, key=lambda entry: entry.name)
    for entry in entries:
        path = pathlib.Path(directory, entry.name)
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(path, follow_dir_links, ancestors)
        elif follow_dir_links and entry.is_symlink() and entry.is_dir():
            yield from _walk(path, follow_dir_links, ancestors)
        else:
            yield path


def collect_members(sources: Iterable[pathlib.Path], use_full_path: bool,
                    follow_dir_links: bool = False) -> List[Member]:
    """
    Expand the sources into the entries that will be archived.

    Directories are walked recursively. Without `use_full_path`, a file
    source is named by its basename and files found in a directory source
    are named relative to that directory's parent.

    Symlinks are kept as links. Writers that can't store links set
    `follow_dir_links` so linked directories contribute their files instead
    of disappearing.
    """
    members = []
    for source in sources:
        source = pathlib.Path(source)
        if not source.exists() and not source.is_symlink():
            raise FileNotFoundError(f'Source not found: {source}')

        if source.is_dir() and (follow_dir_links or not source.is_symlink()):
            base = posixpath.dirname(normalize(source.absolute()))
            for path in _walk(source, follow_dir_links):
                if use_full_path:
                    arcname = _full_arcname(str(path))
                else:
                    arcname = posixpath.relpath(normalize(path.absolute()), base)
                members.append(Member(path=path, arcname=arcname))
        else:
            arcname = _full_arcname(str(source)) if use_full_path else source.name
            members.append(Member(path=source, arcname=arcname))
    return members


def codec_for_destination(destination: pathlib.Path) -> CompressionCodec:
    name = destination.name.lower()
    for suffix, codec in _SUFFIX_CODECS:
        if name.endswith(suffix):
            return codec
    return CompressionCodec.NONE


def _skip_destination(members: Iterable[Member], destination: pathlib.Path) -> List[Member]:
    # An archive written inside one of its own source directories must not
    # end up containing itself
    target = destination.resolve()
    return [member for member in members if member.path.resolve() != target]


def _check_unique(members: Iterable[Member]):
    # Two entries with one name would overwrite each other on extraction
    seen = set()
    for member in members:
        if member.arcname in seen:
            raise ValueError(
                f'Duplicate archive entry {member.arcname!r} from {member.path}; '
                'use --usefullpath to keep source directories in entry names',
            )
        seen.add(member.arcname)


def _summary(destination: pathlib.Path, count: int) -> str:
    size = destination.stat().st_size
    return f'{destination}: {count} entries, {size} bytes written'


class ArchiveBackend:
    """
    Writes archives to the local filesystem.

    Destinations are always truncated, never appended to, so writing the same
    options twice produces the same archive. Entry names must be unique;
    otherwise nothing is written and ValueError is raised.
    """
    def collect_members(self, sources: Iterable[pathlib.Path], use_full_path: bool,
                        follow_dir_links: bool = False) -> List[Member]:
        return collect_members(sources, use_full_path, follow_dir_links)

    def _tarinfo_filter(self, attributes: AttributeOverrides):
        def apply(tarinfo: tarfile.TarInfo) -> tarfile.TarInfo:
            if attributes.owner is not None:
                tarinfo.uid = attributes.owner
                tarinfo.uname = ''
            if attributes.group is not None:
                tarinfo.gid = attributes.group
                tarinfo.gname = ''
            if attributes.mode is not None:
                tarinfo.mode = attributes.mode & 0o7777
            return tarinfo
        return apply

    def write_tar(self, options: TarOptions) -> str:
        codec = options.codec or codec_for_destination(options.destination)
        mode = 'w:' + codec.tar_mode if codec.tar_mode else 'w'
        members = [
            member
            for member in self.collect_members(options.sources, options.use_full_path)
            if options.filter.allows(member.path, member.arcname)
        ]
        members = _skip_destination(members, options.destination)
        _check_unique(members)
        apply_attributes = self._tarinfo_filter(options.attributes)
        with tarfile.open(options.destination, mode) as tar:
            for member in members:
                tar.add(
                    member.path,
                    arcname=member.arcname,
                    recursive=False,
                    filter=apply_attributes,
                )
        return _summary(options.destination, len(members))

    def write_zip(self, options: ZipOptions) -> str:
        # Zip can't store symlinks, so linked directories are archived by
        # their contents
        members = options.members
        if members is None:
            members = self.collect_members(
                options.sources,
                options.use_full_path,
                follow_dir_links=True,
            )
        members = _skip_destination(members, options.destination)
        _check_unique(members)
        with zipfile.ZipFile(options.destination, 'w', zipfile.ZIP_DEFLATED) as archive:
            for member in members:
                archive.write(member.path, arcname=member.arcname)
        return _summary(options.destination, len(members))
