"""
kubectl dispatch.

Installed as (or symlinked to) "kubectl", the shim picks the kubectl
release matching the active cluster and hands the invocation to it:

    stable.txt -> ensure known-good kubectl -> resolve cluster version
               -> ensure target kubectl -> run it with the original argv

Arguments and standard streams pass through untouched, and the exit code
of the real kubectl becomes the shim's exit code.
"""

from __future__ import annotations

import logging
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from korrect._core.lifecycle import ensure_binary
from korrect._core.release import get_stable_version
from korrect._core.resolver import resolve_target_version
from korrect._core.version import normalize_version
from korrect.config import ShimConfig
from korrect.errors import KorrectError, SubprocessError

logger = logging.getLogger(__name__)

# Exit code when the child reports none (killed by a signal)
FALLBACK_EXIT_CODE = 1


def exec_binary(binary_path: Path, args: Sequence[str]) -> int:
    """
    Run a binary with inherited stdio and wait for it.
    
    SIGINT is ignored by the shim while the child runs, so Ctrl-C is left
    to the child.
    
    Args:
        binary_path: Binary to run
        args: Arguments passed verbatim
        
    Returns:
        The child's exit code, or FALLBACK_EXIT_CODE if it was killed by a
        signal
        
    Raises:
        SubprocessError: If the binary cannot be launched
    """
    cmd: List[str] = [str(binary_path), *args]

    # Signal handlers can only be changed from the main thread
    previous = None
    if threading.current_thread() is threading.main_thread():
        previous = signal.signal(signal.SIGINT, lambda signum, frame: None)
        if previous is None:
            previous = signal.SIG_DFL
    try:
        try:
            process = subprocess.Popen(cmd)
        except OSError as e:
            raise SubprocessError(f"Failed to run {binary_path}: {e}") from e
        returncode = process.wait()
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)
    
    if returncode < 0:
        logger.debug(f"{binary_path} terminated by signal {-returncode}")
        return FALLBACK_EXIT_CODE
    return returncode


def run(argv: Sequence[str], config: Optional[ShimConfig] = None) -> int:
    """
    Dispatch an invocation to the kubectl matching the active cluster.
    
    Any failure before the child starts is terminal for the invocation;
    nothing is retried.
    
    Args:
        argv: Arguments after the program name, passed through unparsed
        config: Shim configuration (default: ShimConfig.from_env())
        
    Returns:
        Exit code of the dispatched kubectl
        
    Raises:
        KorrectError: If any resolution, download or launch step fails
    """
    if config is None:
        config = ShimConfig.from_env()
    
    known_good = normalize_version(get_stable_version(config))
    ensure_binary(config, known_good)
    
    target_version = resolve_target_version(config, known_good=known_good)
    target_binary = ensure_binary(config, target_version)
    
    logger.debug(f"using [{target_version}].")
    return exec_binary(target_binary, argv)


def configure_logging(debug: bool) -> None:
    """Send log records to stderr; DEBUG when enabled, warnings otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="korrect: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console entry point for korrect-shim."""
    args = list(sys.argv[1:] if argv is None else argv)
    
    try:
        config = ShimConfig.from_env()
        configure_logging(config.debug)
        logger.debug("Enabled verbose logging.")
        return run(args, config)
    except KorrectError as e:
        print(f"korrect: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
