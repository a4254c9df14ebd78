# Vault - Keyfile Loader
#
# An Enpass keyfile is a small XML document:
#   <?xml version="1.0" encoding="UTF-8"?><Key>9f2c...</Key>
# The hex payload decodes to raw bytes appended to the master password.

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Union

from .exceptions import MalformedDataError, VaultIOError, VaultNotFoundError

logger = logging.getLogger(__name__)

KEY_ELEMENT = "Key"


def load_keyfile(path: Union[str, Path]) -> bytes:
    """
    Read a keyfile and return its decoded key bytes.

    Raises:
        VaultNotFoundError: Keyfile does not exist
        VaultIOError: Keyfile cannot be read
        MalformedDataError: Not XML, no <Key> text, or not valid hex
    """
    keyfile_path = Path(path)
    try:
        content = keyfile_path.read_bytes()
    except FileNotFoundError as e:
        raise VaultNotFoundError("keyfile does not exist", cause=e, path=str(keyfile_path)) from e
    except OSError as e:
        raise VaultIOError("could not load keyfile", cause=e, path=str(keyfile_path)) from e

    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise MalformedDataError("could not decode keyfile", cause=e, path=str(keyfile_path)) from e

    key_node = root if root.tag == KEY_ELEMENT else root.find(f".//{KEY_ELEMENT}")
    if key_node is None or not (key_node.text or "").strip():
        raise MalformedDataError("keyfile has no <Key> content", path=str(keyfile_path))

    try:
        key_bytes = bytes.fromhex(key_node.text.strip())
    except ValueError as e:
        raise MalformedDataError(
            "could not decode keyfile hex bytes", cause=e, path=str(keyfile_path)
        ) from e

    logger.debug("keyfile loaded (%d bytes)", len(key_bytes))
    return key_bytes
