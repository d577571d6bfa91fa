#!/usr/bin/env python3
"""
Archive operations for revision bundles.
Packs a bundle folder into a versioned ZIP ready for upload.
"""

import os
import time
import zipfile
from pathlib import Path

from ..exceptions import ArchiveCreationFailed

DEFAULT_ARCHIVE_TYPE = 'zip'


def archive_name_for(application_name, timestamp_ms=None):
    """<application>.v<unix time millis>.zip, same versioning as Beanstalk bundles."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{application_name}.v{timestamp_ms}.zip"


def _iter_bundle_entries(bundle_folder, skip_path):
    for dirpath, dirnames, filenames in os.walk(bundle_folder):
        dirnames.sort()
        current = Path(dirpath)
        if not dirnames and not filenames and current != bundle_folder:
            yield current, current.relative_to(bundle_folder).as_posix() + '/'
        for filename in sorted(filenames):
            file_path = current / filename
            if file_path.resolve() == skip_path:
                continue
            yield file_path, file_path.relative_to(bundle_folder).as_posix()


def create_deployment_archive(bundle_folder, application_name, temp_dir):
    """
    Create a ZIP archive of every file under bundle_folder, paths kept relative
    to the folder. The folder itself is left untouched.
    Returns the archive path.
    """
    bundle_folder = Path(bundle_folder)
    print(f"Creating deployment bundle archive from folder {bundle_folder}")

    archive_path = Path(temp_dir) / archive_name_for(application_name)
    skip_path = archive_path.resolve()

    try:
        with zipfile.ZipFile(archive_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            for source_path, arcname in _iter_bundle_entries(bundle_folder, skip_path):
                if arcname.endswith('/'):
                    zipf.writestr(arcname, b'')
                else:
                    zipf.write(source_path, arcname=arcname)
    except (OSError, zipfile.BadZipFile) as e:
        print(f"ERROR: Failed to create archive: {e}")
        raise ArchiveCreationFailed(
            f"Failed to create archive from {bundle_folder}: {e}",
            application=application_name, archive=str(archive_path)
        ) from e

    print(f"[OK] Created bundle archive {archive_path}")
    return archive_path


def infer_archive_type(bundle_key):
    """Lowercase extension of the key without the dot, 'zip' when there is none."""
    suffix = Path(bundle_key).suffix
    if suffix and len(suffix) > 1:
        # let the service reject types it does not support
        return suffix[1:].lower()
    return DEFAULT_ARCHIVE_TYPE
