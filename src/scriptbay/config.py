"""Runtime settings read from the environment."""

import os

HOST = os.environ.get("SCRIPTBAY_HOST", "127.0.0.1")
PORT = int(os.environ.get("SCRIPTBAY_PORT", "9090"))
LOG_LEVEL = os.environ.get("SCRIPTBAY_LOG_LEVEL", "info").lower()

# Real privilege-escalation tool; the shim shadows it by basename.
SUDO_PATH = os.environ.get("SCRIPTBAY_SUDO", "/usr/bin/sudo")
SHELL = os.environ.get("SCRIPTBAY_SHELL", "bash")
