import hashlib
import logging
import os.path
import tempfile
from typing import Dict, Optional

import fasteners  # type: ignore[import]

from .backend import ArchiveBackend, TarOptions, ZipOptions
from .errors import BackendWriteError
from .models import ArchiveFormat, ArchivePlan


__all__ = ['ArchiveExecutor']


class ArchiveExecutor:
    """
    Runs a resolved ArchivePlan against an archive backend.

    The executor never retries and never removes a partially written
    destination after a failure; cleaning that up is left to the caller.

    Each destination gets an empty lock file under LOCKFILE_BASE. The file
    is left in place after the lock is released: unlinking it could let a
    process still holding the old file and one creating a new file both
    believe they own the destination. The files live in the system temp
    directory, which the OS clears.
    """
    LOCKFILE_BASE = os.path.join(tempfile.gettempdir(), 'car-%s.lock')

    def __init__(self, backend: Optional[ArchiveBackend] = None,
                 lockfile_base: str = LOCKFILE_BASE):
        self.backend = backend or ArchiveBackend()
        self.lockfile_base = lockfile_base
        self.logger = logging.getLogger(__name__)

        self.lock: Optional[fasteners.InterProcessLock] = None

    def _acquire_destination_lock(self, plan: ArchivePlan) -> bool:
        self.lock = fasteners.InterProcessLock(self._get_lockfile_name(plan))
        return self.lock.acquire(blocking=False)

    def _get_lockfile_name(self, plan: ArchivePlan) -> str:
        # One lock per destination, so unrelated archives can be built
        # side by side
        key = hashlib.sha1(
            str(plan.destination.absolute()).encode('utf-8'),
        ).hexdigest()[:16]
        try:
            return self.lockfile_base % key
        except TypeError:
            return self.lockfile_base

    def _get_log_extra(self, extra_kwargs: Dict, plan: ArchivePlan) -> Dict:
        extra_kwargs.update({
            'format': plan.format.value,
            'destination': str(plan.destination),
        })
        return extra_kwargs

    def _log(self, loglevel: int, plan: ArchivePlan, msg: str, *args, **kwargs):
        extra = self._get_log_extra(kwargs, plan)
        self.logger.log(loglevel, msg, *args, extra=extra)

    def _log_debug(self, plan: ArchivePlan, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, plan, msg, *args, **kwargs)

    def _log_error(self, plan: ArchivePlan, msg: str, *args, **kwargs):
        self._log(logging.ERROR, plan, msg, *args, **kwargs)

    def _log_info(self, plan: ArchivePlan, msg: str, *args, **kwargs):
        self._log(logging.INFO, plan, msg, *args, **kwargs)

    def _release_destination_lock(self):
        try:
            if self.lock:
                self.lock.release()
        except RuntimeError:
            # Lock was never acquired
            pass

    def _write_tar(self, plan: ArchivePlan) -> str:
        self._log_info(plan, 'Creating tar', sources=[str(s) for s in plan.sources])
        options = TarOptions(
            destination=plan.destination,
            sources=plan.sources,
            codec=plan.codec,
            filter=plan.filter,
            attributes=plan.attributes,
            use_full_path=plan.use_full_path,
        )
        return self.backend.write_tar(options)

    def _write_zip(self, plan: ArchivePlan) -> str:
        self._log_info(plan, 'Creating zip', sources=[str(s) for s in plan.sources])
        members = None
        if not plan.filter.is_empty:
            # The zip writer can't filter, so prune the members here rather
            # than let excluded files into the archive
            candidates = self.backend.collect_members(
                plan.sources,
                plan.use_full_path,
                follow_dir_links=True,
            )
            members = tuple(
                member for member in candidates
                if plan.filter.allows(member.path, member.arcname)
            )
            self._log_debug(
                plan,
                'Filtered zip members',
                kept=len(members),
                excluded=len(candidates) - len(members),
            )
        options = ZipOptions(
            destination=plan.destination,
            sources=plan.sources,
            use_full_path=plan.use_full_path,
            members=members,
        )
        return self.backend.write_zip(options)

    def run(self, plan: ArchivePlan) -> str:
        """
        Write the archive described by `plan` and return the backend's message
        """
        if not self._acquire_destination_lock(plan):
            self._log_error(plan, 'Destination is locked by another process')
            raise BackendWriteError(
                f'{plan.format.value} archive {plan.destination}: '
                'another car process is writing this destination',
            )

        try:
            if plan.format is ArchiveFormat.ZIP:
                message = self._write_zip(plan)
            else:
                message = self._write_tar(plan)
        except Exception as ex:
            self._log_error(plan, 'Unable to create archive', error=ex)
            raise BackendWriteError(
                f'{plan.format.value} archive {plan.destination}: {ex}',
            ) from ex
        finally:
            self._release_destination_lock()

        self._log_info(plan, 'Archive created')
        return message
