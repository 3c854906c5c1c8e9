"""File I/O utilities for the disk-backed stores."""
import json
import os

from loguru import logger
from pydantic import BaseModel

from listingmedia.exceptions import StorageError


def build_path(*args: str, make_dir: bool = True) -> str:
    """
    Join path components and optionally create parent directories.

    :param args: Path components to join
    :param make_dir: If True, create parent directories (default True)
    :return: The joined path
    :raises StorageError: If directory creation fails
    """
    path = os.path.join(*args)
    if make_dir:
        parent_dir = os.path.dirname(path)
        if parent_dir:
            try:
                os.makedirs(parent_dir, exist_ok=True)
            except PermissionError as e:
                raise StorageError(f"Permission denied creating directory '{parent_dir}': {e}") from e
            except OSError as e:
                raise StorageError(f"Failed to create directory '{parent_dir}': {e}") from e
    return path


def write_bytes(data: bytes, path: str, exclusive: bool = False) -> None:
    """
    Write raw bytes to a file, creating parent directories.

    :param data: Content to write
    :param path: File path to write to
    :param exclusive: If True, fail instead of overwriting an existing file
    :raises FileExistsError: If exclusive is set and the file already exists
    :raises StorageError: If the write fails
    """
    try:
        with open(build_path(path), 'xb' if exclusive else 'wb') as out:
            out.write(data)
        logger.debug(f"Wrote {len(data)} bytes to {path}")
    except FileExistsError:
        raise
    except PermissionError as e:
        raise StorageError(f"Permission denied writing to '{path}': {e}") from e
    except OSError as e:
        raise StorageError(f"Failed to write to '{path}': {e}") from e


def remove_file(path: str) -> None:
    """
    Remove a file.

    :param path: File to remove
    :raises StorageError: If the file does not exist or cannot be removed
    """
    try:
        os.remove(path)
        logger.debug(f"Removed {path}")
    except FileNotFoundError as e:
        raise StorageError(f"File not found: '{path}'") from e
    except OSError as e:
        raise StorageError(f"Failed to remove '{path}': {e}") from e


def write_model(model: BaseModel, path: str) -> None:
    """
    Write a Pydantic model to a JSON file.

    The file is written next to its destination first and then moved into
    place, so readers never see a partially written record.

    :param model: Model to serialize
    :param path: File path to write to
    :raises StorageError: If the write fails
    """
    tmp_path = f'{path}.tmp'
    try:
        with open(build_path(tmp_path), 'w') as out:
            json.dump(model.model_dump(mode='json', by_alias=True), out, indent=2)
        os.replace(tmp_path, path)
        logger.debug(f"Wrote model data to {path}")
    except PermissionError as e:
        raise StorageError(f"Permission denied writing to '{path}': {e}") from e
    except OSError as e:
        raise StorageError(f"Failed to write to '{path}': {e}") from e


def read_model_json(path: str) -> dict | list:
    """
    Read JSON data from a file.

    :param path: File path to read from
    :return: Parsed JSON data
    :raises FileNotFoundError: If the file does not exist
    :raises StorageError: If the file cannot be read or holds invalid JSON
    """
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        raise
    except PermissionError as e:
        raise StorageError(f"Permission denied reading '{path}': {e}") from e
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in '{path}': {e}") from e
    except OSError as e:
        raise StorageError(f"Failed to read '{path}': {e}") from e
