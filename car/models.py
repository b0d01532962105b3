"""
Data types shared by the resolver, executor and backend
"""
import enum
import pathlib
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from .filters import is_allowed


__all__ = [
    'ArchiveFormat',
    'ArchivePlan',
    'AttributeOverrides',
    'CompressionCodec',
    'FilterRule',
]


class ArchiveFormat(str, enum.Enum):
    TAR = 'tar'
    ZIP = 'zip'
    UNSUPPORTED = 'unsupported'

    @classmethod
    def from_string(cls, value: str) -> 'ArchiveFormat':
        if value in (cls.TAR.value, cls.ZIP.value):
            return cls(value)
        return cls.UNSUPPORTED


class CompressionCodec(str, enum.Enum):
    """
    Compression applied to a tar stream
    """
    NONE = 'none'
    GZIP = 'gzip'
    BZIP2 = 'bzip2'
    XZ = 'xz'
    UNSUPPORTED = 'unsupported'

    @classmethod
    def from_string(cls, value: str) -> 'CompressionCodec':
        return _CODEC_ALIASES.get(value.strip().lower(), cls.UNSUPPORTED)

    @property
    def tar_mode(self) -> str:
        # Suffix for tarfile.open's mode string, e.g. 'w:gz'
        return {
            CompressionCodec.NONE: '',
            CompressionCodec.GZIP: 'gz',
            CompressionCodec.BZIP2: 'bz2',
            CompressionCodec.XZ: 'xz',
        }[self]


_CODEC_ALIASES: Dict[str, CompressionCodec] = {
    'none': CompressionCodec.NONE,
    'tar': CompressionCodec.NONE,
    'gzip': CompressionCodec.GZIP,
    'gz': CompressionCodec.GZIP,
    'tgz': CompressionCodec.GZIP,
    'tar.gz': CompressionCodec.GZIP,
    'bzip2': CompressionCodec.BZIP2,
    'bz2': CompressionCodec.BZIP2,
    'tbz': CompressionCodec.BZIP2,
    'tbz2': CompressionCodec.BZIP2,
    'tar.bz2': CompressionCodec.BZIP2,
    'xz': CompressionCodec.XZ,
    'txz': CompressionCodec.XZ,
    'tar.xz': CompressionCodec.XZ,
}


class FilterRule(BaseModel):
    """
    Extension and anchored-path include/exclude rules
    """
    model_config = ConfigDict(frozen=True)

    exclude_extensions: Tuple[str, ...] = ()
    include_extensions: Tuple[str, ...] = ()
    exclude_anchor: str = ''
    include_anchor: str = ''

    @property
    def is_empty(self) -> bool:
        return not (self.exclude_extensions or self.include_extensions or
                    self.exclude_anchor or self.include_anchor)

    def allows(self, path, arcname: Optional[str] = None) -> bool:
        return is_allowed(self, path, arcname)


class AttributeOverrides(BaseModel):
    """
    Tar entry metadata to force. `None` leaves the value from the source file.
    """
    model_config = ConfigDict(frozen=True)

    owner: Optional[int] = None
    group: Optional[int] = None
    mode: Optional[int] = None

    @field_validator('owner', 'group', 'mode')
    @classmethod
    def _not_negative(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError('must not be negative')
        return value

    @property
    def is_empty(self) -> bool:
        return self.owner is None and self.group is None and self.mode is None


class ArchivePlan(BaseModel):
    """
    A fully resolved request to build one archive
    """
    model_config = ConfigDict(frozen=True)

    destination: pathlib.Path
    sources: Tuple[pathlib.Path, ...]
    format: ArchiveFormat
    codec: Optional[CompressionCodec] = None
    filter: FilterRule = FilterRule()
    attributes: AttributeOverrides = AttributeOverrides()
    use_full_path: bool = False

    @field_validator('destination')
    @classmethod
    def _destination_given(cls, value: pathlib.Path) -> pathlib.Path:
        if not str(value) or str(value) == '.':
            raise ValueError('destination is required')
        return value

    @field_validator('sources')
    @classmethod
    def _sources_given(cls, value: Tuple[pathlib.Path, ...]) -> Tuple[pathlib.Path, ...]:
        if not value:
            raise ValueError('at least one source is required')
        return value

    @field_validator('format')
    @classmethod
    def _format_supported(cls, value: ArchiveFormat) -> ArchiveFormat:
        if value is ArchiveFormat.UNSUPPORTED:
            raise ValueError('format is not supported')
        return value

    @field_validator('codec')
    @classmethod
    def _codec_supported(cls, value: Optional[CompressionCodec]) -> Optional[CompressionCodec]:
        if value is CompressionCodec.UNSUPPORTED:
            raise ValueError('compression type is not supported')
        return value
