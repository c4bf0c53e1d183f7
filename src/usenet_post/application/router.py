"""Output routing: live stream, file or buffered bytes."""

from typing import Union

from usenet_post.domain.exceptions import EngineExitAbnormal
from usenet_post.domain.models import OutputMode
from usenet_post.infrastructure.engine import EngineProcess
from usenet_post.shared.logging import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


class OutputRouter:
    """Dispatches on the job's output mode once the engine is running."""

    def route(self, process: EngineProcess) -> Union[EngineProcess, bytes]:
        """
        Live and file modes hand back the running process straight away.

        Buffered mode collects stdout until the channel closes, then waits for
        the engine and returns the concatenated bytes.

        Raises:
            EngineExitAbnormal: Buffered mode only, on a non-zero exit
        """
        if process.mode is not OutputMode.BUFFERED:
            return process
        return self.collect(process)

    def collect(self, process: EngineProcess) -> bytes:
        stdout = process.stdout
        chunks = []
        try:
            for chunk in iter(lambda: stdout.read1(CHUNK_SIZE), b""):
                chunks.append(chunk)
        finally:
            stdout.close()

        output = b"".join(chunks)
        rc = process.wait()
        logger.debug(f"Collected {len(output)} bytes from engine pid={process.pid}")
        if rc != 0:
            raise EngineExitAbnormal(rc, output)
        return output
