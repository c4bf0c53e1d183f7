"""Tests for the engine supervisor, using sh as a stand-in engine."""

import io

import pytest

from usenet_post.application.router import OutputRouter
from usenet_post.domain.exceptions import EngineExitAbnormal, EngineSpawnError
from usenet_post.domain.models import OutputMode
from usenet_post.infrastructure.engine import EngineSupervisor, LogProgressDecoder, SupervisorState

MANIFEST = 'procjson://"a.txt",3,"rclone cat a.txt"\nprocjson://"b.txt",4,"rclone cat b.txt"'

# Echoes its input as the "NZB" and logs like the engine does.
FAKE_ENGINE = (
    "cat; "
    "echo '[INFO] Uploading 12 article(s) from 2 file(s) totalling 1.50 MiB.' >&2; "
    "echo '[INFO] Article posting progress: 12 read, 12 posted' >&2"
)


def _sh(script):
    return ["sh", "-c", script]


def test_buffered_returns_stdout_and_mirrors_log():
    mirror = io.BytesIO()
    records = []
    decoder = LogProgressDecoder(lambda r: records.append((r.articles, r.posted)))

    process = EngineSupervisor(mirror=mirror).spawn(
        _sh(FAKE_ENGINE), MANIFEST, OutputMode.BUFFERED, decoder=decoder
    )
    output = OutputRouter().route(process)

    assert output == MANIFEST.encode("utf-8")
    assert b"Uploading 12 article(s)" in mirror.getvalue()
    assert records == [(12, 0), (12, 12)]
    assert decoder.record.total_size == "1.50 MiB"
    assert process.state is SupervisorState.CLOSED


def test_log_is_mirrored_without_decoder():
    mirror = io.BytesIO()
    process = EngineSupervisor(mirror=mirror).spawn(_sh(FAKE_ENGINE), MANIFEST, OutputMode.BUFFERED)
    OutputRouter().route(process)
    assert b"Article posting progress" in mirror.getvalue()


def test_file_mode_writes_output(tmp_path):
    out = tmp_path / "job.nzb"
    process = EngineSupervisor(mirror=io.BytesIO()).spawn(
        _sh(FAKE_ENGINE), MANIFEST, OutputMode.FILE, out_path=str(out)
    )

    assert OutputRouter().route(process) is process
    assert process.stdout is None
    assert process.wait() == 0
    assert out.read_bytes() == MANIFEST.encode("utf-8")


def test_file_mode_requires_path():
    with pytest.raises(ValueError):
        EngineSupervisor().spawn(_sh("cat"), MANIFEST, OutputMode.FILE)


def test_abnormal_exit_in_buffered_mode():
    process = EngineSupervisor(mirror=io.BytesIO()).spawn(
        _sh("cat >/dev/null; echo 'fatal' >&2; exit 3"), MANIFEST, OutputMode.BUFFERED
    )
    with pytest.raises(EngineExitAbnormal) as excinfo:
        OutputRouter().route(process)
    assert excinfo.value.returncode == 3
    assert process.state is SupervisorState.FAILED


def test_engine_closing_stdin_early_is_not_fatal_to_supervisor():
    process = EngineSupervisor(mirror=io.BytesIO()).spawn(
        _sh("exec 0<&-; exit 0"), MANIFEST * 20000, OutputMode.BUFFERED
    )
    assert OutputRouter().route(process) == b""


def test_missing_engine_binary():
    with pytest.raises(EngineSpawnError):
        EngineSupervisor().spawn(["/nonexistent/nyuu"], MANIFEST, OutputMode.BUFFERED)


def test_terminate_live_process():
    process = EngineSupervisor(mirror=io.BytesIO()).spawn(
        _sh("cat >/dev/null; exec sleep 30"), MANIFEST, OutputMode.FILE, out_path="/dev/null"
    )
    process.terminate()
    assert process.wait(timeout=10) != 0
