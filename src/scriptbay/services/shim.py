"""Wrap an installer script so every sudo call inside it is passwordless.

Installer scripts often call sudo themselves, and so do the tools they run
(yay, paru, makepkg...). Escalating once at the top is not enough, so the
wrapper shadows ``sudo`` on PATH with a shim that feeds the cached password
through an askpass helper. Everything lives in a private temp directory that
the EXIT trap removes.

This module only composes text; nothing here touches the filesystem.
"""

import shlex
from pathlib import PurePosixPath

from scriptbay.config import SUDO_PATH

KEEPALIVE_INTERVAL = 50  # seconds; sudo's default timestamp_timeout is 5 min

_PREAMBLE = """\
#!/bin/bash
set -e
exec 2>&1

# --- passwordless sudo shim ---
umask 077
_SD=$(mktemp -d {tmp_root}/.sd.XXXXXX)
chmod 700 "$_SD"
_KEEPALIVE_PID=

_sd_cleanup() {{
  if [ -n "$_KEEPALIVE_PID" ]; then kill "$_KEEPALIVE_PID" 2>/dev/null || true; fi
  rm -rf "$_SD"
}}
trap _sd_cleanup EXIT
trap 'exit 129' HUP
trap 'exit 130' INT
trap 'exit 143' TERM

printf '%s\\n' {secret} > "$_SD/pw"
chmod 600 "$_SD/pw"

cat > "$_SD/askpass" <<'ASKPASS'
#!/bin/sh
exec cat "$(dirname "$0")/pw"
ASKPASS
chmod 700 "$_SD/askpass"
export SUDO_ASKPASS="$_SD/askpass"

cat > "$_SD"/{shim_name} <<'SHIM'
#!/bin/bash
# Only sudo's own leading options decide whether this is a -n keep-alive call.
# Short options are read letter by letter; a value-taking letter consumes
# the rest of its word, or the next word if nothing follows it.
_nonint=0
_skip=0
for _a in "$@"; do
  if [ "$_skip" = 1 ]; then _skip=0; continue; fi
  case "$_a" in
    --non-interactive) _nonint=1; break ;;
    --) break ;;
    --auth-type|--close-from|--login-class|--chdir|--group|--prompt|--chroot|--role|--command-timeout|--type|--other-user|--user) _skip=1 ;;
    --*) ;;
    -?*)
      _i=1
      while [ "$_i" -lt "${{#_a}}" ]; do
        case "${{_a:_i:1}}" in
          n) _nonint=1; break 2 ;;
          [aCcDgpRrTtUu])
            if [ "$((_i + 1))" -eq "${{#_a}}" ]; then _skip=1; fi
            break ;;
          h) break ;;
        esac
        _i=$((_i + 1))
      done
      ;;
    *) break ;;
  esac
done
if [ "$_nonint" = 1 ]; then
  {real} -n "$@" 2>/dev/null || true
else
  exec {real} -A "$@"
fi
SHIM
chmod 700 "$_SD"/{shim_name}
export PATH="$_SD:$PATH"

if ! {real} -A -v; then
  echo "sudo: authentication failed, aborting before running the script"
  exit 1
fi

while true; do
  sleep {interval}
  kill -0 "$$" 2>/dev/null || exit 0
  {real} -A -v >/dev/null 2>&1 || true
done </dev/null >/dev/null 2>&1 &
_KEEPALIVE_PID=$!
# --- end shim ---

"""


def strip_shebang(body: str) -> str:
    """Drop a leading ``#!`` line; anything else is returned untouched."""
    if not body.startswith("#!"):
        return body
    _, sep, rest = body.partition("\n")
    return rest if sep else ""


def quote_secret(secret: str) -> str:
    """Embed ``secret`` as a single-quoted shell literal."""
    return "'" + secret.replace("'", "'\\''") + "'"


def build_wrapped_script(
    secret: str,
    body: str,
    sudo_path: str = SUDO_PATH,
    tmp_root: str = "/tmp",
    keepalive_interval: int = KEEPALIVE_INTERVAL,
) -> str:
    """Return ``body`` prefixed with the sudo shim preamble.

    ``sudo_path`` is the real tool the shim delegates to; the shim itself
    takes its basename so it shadows every ``sudo`` lookup on PATH.
    ``tmp_root`` is where the private shim directory gets created at run time.
    ``keepalive_interval`` is the seconds between sudo timestamp refreshes.
    """
    preamble = _PREAMBLE.format(
        tmp_root=shlex.quote(tmp_root),
        secret=quote_secret(secret),
        shim_name=shlex.quote(PurePosixPath(sudo_path).name),
        real=shlex.quote(sudo_path),
        interval=keepalive_interval,
    )
    return preamble + strip_shebang(body)
