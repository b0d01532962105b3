"""
Turn configuration and command arguments into an ArchivePlan.

Resolution performs no I/O: sources are not checked for existence here, that
happens when the backend writes the archive.
"""
import logging
from typing import Optional, Sequence, Tuple

from pydantic import ValidationError

from .errors import InvalidArgument, UnsupportedFormat
from .models import (
    ArchiveFormat,
    ArchivePlan,
    AttributeOverrides,
    CompressionCodec,
    FilterRule,
)


__all__ = ['resolve', 'split_list']

logger = logging.getLogger(__name__)


def split_list(value: str) -> Tuple[str, ...]:
    """
    Split a comma-separated setting. An empty string is an empty list.
    """
    if not value:
        return ()
    return tuple(value.split(','))


def _resolve_format(config) -> ArchiveFormat:
    value = config.get_string('format')
    archive_format = ArchiveFormat.from_string(value)
    if archive_format is ArchiveFormat.ZIP:
        return archive_format
    if archive_format is ArchiveFormat.UNSUPPORTED and value:
        logger.debug('Unrecognized format, using tar', extra={'format': value})
    return ArchiveFormat.TAR


def _resolve_codec(config) -> Optional[CompressionCodec]:
    value = config.get_string('type')
    if not value:
        return None
    codec = CompressionCodec.from_string(value)
    if codec is CompressionCodec.UNSUPPORTED:
        raise UnsupportedFormat(value)
    return codec


def _resolve_filter(config) -> FilterRule:
    return FilterRule(
        exclude_extensions=split_list(config.get_string('exclude-ext')),
        include_extensions=split_list(config.get_string('include-ext')),
        exclude_anchor=config.get_string('exclude-anchored'),
        include_anchor=config.get_string('include-anchored'),
    )


def _optional(config, name: str, getter: str) -> Optional[int]:
    if not config.is_set(name):
        return None
    value = getattr(config, getter)(name)
    if value < 0:
        raise InvalidArgument(f'{name} must not be negative: {value}')
    return value


def _resolve_attributes(config) -> AttributeOverrides:
    return AttributeOverrides(
        owner=_optional(config, 'owner', 'get_int'),
        group=_optional(config, 'group', 'get_int'),
        mode=_optional(config, 'mode', 'get_int64'),
    )


def resolve(config, destination, sources: Sequence) -> ArchivePlan:
    """
    Build a validated plan for one archive.

    Raises InvalidArgument for a missing destination or sources,
    UnsupportedFormat for an unknown tar compression type, and lets
    ConfigReadError from `config` propagate.
    """
    if not destination or not str(destination).strip():
        raise InvalidArgument('A destination is required')
    if not sources:
        raise InvalidArgument('At least one source is required')
    if any(not str(source).strip() for source in sources):
        raise InvalidArgument('Sources must not be empty paths')

    archive_format = _resolve_format(config)
    codec = None
    attributes = AttributeOverrides()
    if archive_format is ArchiveFormat.TAR:
        codec = _resolve_codec(config)
        attributes = _resolve_attributes(config)
    else:
        # Ownership and mode are tar concepts; zip drops them silently
        logger.debug('Ignoring type, owner, group and mode for zip')

    try:
        plan = ArchivePlan(
            destination=destination,
            sources=tuple(sources),
            format=archive_format,
            codec=codec,
            filter=_resolve_filter(config),
            attributes=attributes,
            use_full_path=config.get_bool('usefullpath'),
        )
    except ValidationError as ex:
        raise InvalidArgument(str(ex)) from ex

    logger.debug(
        'Resolved archive plan',
        extra={
            'destination': str(plan.destination),
            'format': plan.format.value,
            'source_count': len(plan.sources),
        },
    )
    return plan
