"""Supervision of the posting engine process."""

import enum
import subprocess
import sys
import threading
from pathlib import Path
from typing import BinaryIO, IO, List, Optional

from usenet_post.domain.exceptions import EngineSpawnError
from usenet_post.domain.models import OutputMode
from usenet_post.domain.protocols import IProgressDecoder
from usenet_post.shared.logging import get_logger

logger = get_logger(__name__)


class SupervisorState(enum.Enum):
    SPAWNING = "spawning"
    STREAMING = "streaming"
    DRAINING = "draining"
    CLOSED = "closed"
    FAILED = "failed"


class EngineProcess:
    """
    Handle on a running posting engine.

    ``stdout`` is only set in buffered mode. In live and file modes callers
    use :meth:`wait` or :meth:`terminate` to manage the job.
    """

    def __init__(self, popen: subprocess.Popen, mode: OutputMode, mirror: Optional[BinaryIO] = None,
                 decoder: Optional[IProgressDecoder] = None):
        self.popen = popen
        self.mode = mode
        self.state = SupervisorState.SPAWNING
        self._mirror = mirror
        self._decoder = decoder
        self._tee = threading.Thread(
            target=self._tee_stderr,
            name=f"engine-stderr-{popen.pid}",
            daemon=True,
        )
        self._tee.start()

    @property
    def pid(self) -> int:
        return self.popen.pid

    @property
    def stdout(self) -> Optional[IO[bytes]]:
        return self.popen.stdout

    @property
    def returncode(self) -> Optional[int]:
        return self.popen.returncode

    def _transition(self, state: SupervisorState) -> None:
        if self.state is SupervisorState.FAILED:
            return
        logger.debug(f"engine pid={self.pid}: {self.state.value} -> {state.value}")
        self.state = state

    def _tee_stderr(self) -> None:
        """Mirror the engine log to our stderr and feed it to the decoder."""
        stream = self.popen.stderr
        if stream is None:
            return
        try:
            for raw in iter(stream.readline, b""):
                if self._mirror is not None:
                    try:
                        self._mirror.write(raw)
                        self._mirror.flush()
                    except (OSError, ValueError):
                        # Our own stderr went away; keep decoding.
                        self._mirror = None
                if self._decoder is not None:
                    self._decoder.feed(raw.decode("utf-8", errors="replace"))
        finally:
            stream.close()

    def stream_manifest(self, manifest: str) -> None:
        """Write the manifest to the engine's stdin, then close it."""
        self._transition(SupervisorState.STREAMING)
        stdin = self.popen.stdin
        try:
            stdin.write(manifest.encode("utf-8"))
            stdin.flush()
        except BrokenPipeError:
            logger.error(f"engine pid={self.pid} closed its input before reading the manifest")
            self._transition(SupervisorState.FAILED)
        finally:
            try:
                stdin.close()
            except BrokenPipeError:
                pass
        self._transition(SupervisorState.DRAINING)

    def wait(self, timeout: Optional[float] = None) -> int:
        """Wait for exit and for the log to be fully drained."""
        rc = self.popen.wait(timeout=timeout)
        self._tee.join(timeout)
        if rc != 0:
            logger.error(f"Posting engine pid={self.pid} exited with status {rc}")
            self._transition(SupervisorState.FAILED)
        else:
            logger.info(f"Posting engine pid={self.pid} finished")
            self._transition(SupervisorState.CLOSED)
        return rc

    def terminate(self) -> None:
        self.popen.terminate()

    def kill(self) -> None:
        self.popen.kill()


class EngineSupervisor:
    """Spawns the posting engine and wires its three channels."""

    def __init__(self, mirror: Optional[BinaryIO] = None):
        """
        Args:
            mirror: Where the engine log is copied; defaults to our stderr
        """
        self._mirror = mirror

    def spawn(
        self,
        argv: List[str],
        manifest: str,
        mode: OutputMode,
        out_path: Optional[str] = None,
        decoder: Optional[IProgressDecoder] = None,
    ) -> EngineProcess:
        """
        Start the engine and stream the manifest into it.

        Args:
            argv: Full engine command line
            manifest: Manifest text, one line per file
            mode: Output mode deciding where stdout goes
            out_path: Destination file in FILE mode
            decoder: Optional progress decoder fed with log lines

        Raises:
            EngineSpawnError: If the engine cannot be started
        """
        out_file = None
        if mode is OutputMode.LIVE:
            stdout = None
        elif mode is OutputMode.FILE:
            if not out_path:
                raise ValueError("FILE mode needs an output path")
            try:
                out_file = open(Path(out_path), "wb")
            except OSError as e:
                raise EngineSpawnError(f"Cannot open output file {out_path}: {e}") from e
            stdout = out_file
        else:
            stdout = subprocess.PIPE

        logger.debug(f"Spawning engine: {' '.join(argv)}")
        try:
            popen = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=stdout,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise EngineSpawnError(f"Failed to start posting engine {argv[0]!r}: {e}") from e
        finally:
            # The child holds its own descriptor for the file.
            if out_file is not None:
                out_file.close()

        mirror = self._mirror if self._mirror is not None else sys.stderr.buffer
        process = EngineProcess(popen, mode, mirror=mirror, decoder=decoder)
        logger.info(f"Started posting engine pid={process.pid} ({mode.value} output)")
        process.stream_manifest(manifest)
        return process
