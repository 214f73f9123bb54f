import logging
import os
import pathlib

logger = logging.getLogger(__name__)


def get_resource_path(rel_path: str, resolve_symlinks=False) -> str:
    """Returns the absolute path from the given relative path (relative to the appreg package dir)"""

    if pathlib.PurePosixPath(rel_path).is_absolute():
        logger.debug(f'get_resource_path(): Already an absolute path: {rel_path}')
        return str(rel_path)
    dir_of_py_file = os.path.dirname(__file__)
    # go up 1 dir: from appreg/util to appreg
    package_dir = os.path.join(dir_of_py_file, os.pardir)
    rel_path_to_resource = os.path.join(package_dir, rel_path)
    if resolve_symlinks:
        abs_path_to_resource = os.path.realpath(rel_path_to_resource)
    else:
        abs_path_to_resource = os.path.abspath(rel_path_to_resource)
    logger.debug('Resource path: ' + abs_path_to_resource)
    return abs_path_to_resource


def write_json_atomically(json_file: str, content: str):
    """Writes to a ".part" file next to the target, then renames it over the target"""
    tmp_filename = json_file + '.part'
    with open(tmp_filename, 'w') as f:
        f.write(content)
    os.replace(tmp_filename, json_file)
