"""Credential validation: prove a password unlocks sudo, then cache it."""

import asyncio
import logging

from scriptbay.config import SUDO_PATH
from scriptbay.credentials import CredentialStore

logger = logging.getLogger(__name__)


class PrivilegeToolError(RuntimeError):
    """The privilege-escalation tool could not be spawned at all."""


async def validate_password(
    store: CredentialStore,
    candidate: str,
    sudo_path: str = SUDO_PATH,
) -> bool:
    """Check ``candidate`` with ``sudo -S -v`` and commit it on success.

    ``-S`` reads the password from stdin instead of a terminal and ``-v``
    only refreshes the cached timestamp, so nothing else happens on the host.

    Returns False (store untouched) when sudo rejects the password.
    Raises PrivilegeToolError if sudo cannot be started.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            sudo_path, "-S", "-v",
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        logger.error("Could not start %s: %s", sudo_path, e)
        raise PrivilegeToolError(f"Failed to run {sudo_path}: {e}") from e

    await proc.communicate(f"{candidate}\n".encode())

    if proc.returncode == 0:
        store.set(candidate)
        logger.info("Password accepted, credential cached")
        return True

    logger.warning("Password rejected (sudo exit status %s)", proc.returncode)
    return False
