"""Tests for the local ffmpeg engine using a stand-in ffmpeg script"""

import asyncio
import os
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path

from cortado.engine.base import EngineResources
from cortado.engine.invoker import EngineInvoker
from cortado.engine.local import (
    FFmpegEngine,
    WHOLE_INPUT_SEGMENT_TIME,
    load_engine_resources,
    prepare_argv,
)
from cortado.exceptions import EngineLoadError, ProcessError
from cortado.media import MediaSource
from cortado.pipeline import JobStateMachine
from cortado.status import JobStage
from cortado.utils import parse_clock
from tests.fakes import FakeProbe

FAKE_FFMPEG = textwrap.dedent("""\
    #!/bin/sh
    if [ "$1" = "-version" ]; then
        echo "ffmpeg version 6.1-test"
        exit 0
    fi
    printf '%s\\n' "$@" > args.txt
    echo $$ > pid.txt
    if [ -f fail ]; then
        echo "input.mp4: Invalid data found when processing input" >&2
        exit 1
    fi
    echo "  Duration: 00:02:30.00, start: 0.000000, bitrate: 1000 kb/s" >&2
    if [ -f hang ]; then
        echo "progress=end"
        exec sleep 30
    fi
    sleep 0.2
    echo "out_time=00:01:15.000000"
    echo "progress=continue"
    echo "out_time=N/A"
    echo "progress=end"
    printf 'x' > clipe_001.mp4
    exit 0
""")


class TestPrepareArgv(unittest.TestCase):
    def test_empty_segment_times_becomes_single_segment(self):
        argv = ["-i", "input.mp4", "-f", "segment", "-segment_times", "", "-reset_timestamps", "1", "out_%03d.mp4"]
        self.assertEqual(
            prepare_argv(argv),
            ["-i", "input.mp4", "-f", "segment", "-segment_time", WHOLE_INPUT_SEGMENT_TIME,
             "-reset_timestamps", "1", "out_%03d.mp4"]
        )

    def test_non_empty_segment_times_kept(self):
        argv = ["-segment_times", "60,120", "out.mp4"]
        self.assertEqual(prepare_argv(argv), argv)


class TestParseClock(unittest.TestCase):
    def test_values(self):
        self.assertEqual(parse_clock("00:02:30.00"), 150.0)
        self.assertEqual(parse_clock("01:00:00.500000"), 3600.5)
        self.assertIsNone(parse_clock("N/A"))
        self.assertIsNone(parse_clock("garbage"))


class TestLoadEngineResources(unittest.TestCase):
    def test_missing_binary(self):
        with self.assertRaises(EngineLoadError):
            load_engine_resources("definitely-not-ffmpeg-binary")


@unittest.skipIf(sys.platform.startswith("win"), "requires a POSIX shell")
class TestFFmpegEngine(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        script = root / "ffmpeg"
        script.write_text(FAKE_FFMPEG)
        os.chmod(script, 0o755)
        self.workspace = root / "engine"
        self.engine = FFmpegEngine()
        self.logs = []
        self.progress = []
        self.engine.on("log", self.logs.append)
        self.engine.on("progress", self.progress.append)
        await self.engine.load(EngineResources(ffmpeg_path=str(script), workspace=self.workspace))

    async def asyncTearDown(self):
        self._tmp.cleanup()

    async def test_load_creates_workspace(self):
        self.assertTrue(self.workspace.is_dir())
        self.assertIn("ffmpeg version 6.1-test", self.logs)

    async def test_storage(self):
        await self.engine.write_file("input.mp4", b"video")
        self.assertEqual((self.workspace / "input.mp4").read_bytes(), b"video")
        self.assertEqual(await self.engine.read_file("input.mp4"), b"video")
        await self.engine.delete_file("input.mp4")
        with self.assertRaises(FileNotFoundError):
            await self.engine.read_file("input.mp4")
        with self.assertRaises(FileNotFoundError):
            await self.engine.delete_file("input.mp4")

    async def test_rejects_paths_outside_workspace(self):
        for name in ("../escape.mp4", "sub/clip.mp4", "", ".."):
            with self.assertRaises(ValueError):
                await self.engine.write_file(name, b"x")

    async def test_exec_reports_progress_and_logs(self):
        await self.engine.exec(["-i", "input.mp4", "-segment_times", "", "clipe_%03d.mp4"])

        self.assertEqual(self.progress, [0.5, 1.0])
        self.assertTrue(any("Duration:" in line for line in self.logs))
        self.assertEqual(await self.engine.read_file("clipe_001.mp4"), b"x")
        args = (self.workspace / "args.txt").read_text().splitlines()
        self.assertIn("-progress", args)
        self.assertNotIn("-segment_times", args)
        self.assertEqual(args[args.index("-segment_time") + 1], WHOLE_INPUT_SEGMENT_TIME)

    async def test_list_files(self):
        self.assertEqual(await self.engine.list_files(), [])
        await self.engine.write_file("clipe_002.mp4", b"b")
        await self.engine.write_file("clipe_001.mp4", b"a")
        (self.workspace / "nested").mkdir()
        self.assertEqual(await self.engine.list_files(), ["clipe_001.mp4", "clipe_002.mp4"])

    async def test_exec_failure(self):
        (self.workspace / "fail").write_text("")
        with self.assertRaises(ProcessError) as ctx:
            await self.engine.exec(["-i", "input.mp4", "out.mp4"])
        self.assertEqual(ctx.exception.exit_code, 1)
        self.assertIn("Invalid data found", ctx.exception.message)

    async def test_failing_progress_handler_kills_ffmpeg(self):
        (self.workspace / "hang").write_text("")

        def explode(ratio):
            raise RuntimeError("observer failed")

        self.engine.on("progress", explode)
        with self.assertRaises(RuntimeError):
            await asyncio.wait_for(self.engine.exec(["-i", "input.mp4", "out.mp4"]), timeout=10)

        pid = int((self.workspace / "pid.txt").read_text())
        with self.assertRaises(ProcessLookupError):
            os.kill(pid, 0)


@unittest.skipIf(sys.platform.startswith("win"), "requires a POSIX shell")
class TestSingleClipRun(unittest.IsolatedAsyncioTestCase):
    """A whole job against the stand-in ffmpeg, for a video shorter than one segment"""

    async def asyncSetUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        script = root / "ffmpeg"
        script.write_text(FAKE_FFMPEG)
        os.chmod(script, 0o755)
        self.workspace = root / "engine"
        resources = EngineResources(ffmpeg_path=str(script), workspace=self.workspace)
        invoker = EngineInvoker(FFmpegEngine(), resource_loader=lambda: resources, timeout=None)
        self.machine = JobStateMachine(invoker, probe=FakeProbe(duration=45.0), segment_length=60)

    async def asyncTearDown(self):
        self._tmp.cleanup()

    async def test_ffmpeg_receives_single_segment_arguments(self):
        source = MediaSource(name="short.mp4", data=b"movie-bytes", mime_type="video/mp4")
        state = await self.machine.start(source)

        self.assertEqual(state.stage, JobStage.DONE)
        self.assertEqual([a.name for a in state.artifacts], ["clipe_001.mp4"])
        self.assertEqual(state.artifacts[0].data, b"x")

        args = (self.workspace / "args.txt").read_text().splitlines()
        self.assertEqual(args[:7], ["-hide_banner", "-nostdin", "-nostats", "-y", "-progress", "pipe:1", "-i"])
        self.assertEqual(args[7], "input.mp4")
        self.assertNotIn("-segment_times", args)
        self.assertNotIn("", args)
        self.assertEqual(args[args.index("-f") + 1], "segment")
        self.assertEqual(args[args.index("-segment_time") + 1], WHOLE_INPUT_SEGMENT_TIME)
        self.assertEqual(args[args.index("-segment_start_number") + 1], "1")
        self.assertEqual(args[-1], "clipe_%03d.mp4")

        # Input and clip are removed; only the stand-in's own files remain
        self.assertEqual(sorted(p.name for p in self.workspace.iterdir()), ["args.txt", "pid.txt"])


if __name__ == "__main__":
    unittest.main()
