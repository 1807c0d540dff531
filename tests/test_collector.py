import unittest

from cortado.collector import ArtifactCollector, ArtifactOutcome
from cortado.engine.invoker import EngineInvoker
from cortado.segmentation import plan_segments
from tests.fakes import FakeEngine, fake_resources


class TestArtifactCollector(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = FakeEngine()
        self.invoker = EngineInvoker(self.engine, resource_loader=fake_resources)
        await self.invoker.initialize()
        self.collector = ArtifactCollector(self.invoker)

    async def test_collects_all_clips_in_order(self):
        for index in (1, 2, 3):
            self.engine.files[f"clipe_{index:03d}.mp4"] = f"clip-{index}".encode()

        artifacts = await self.collector.collect(plan_segments(150.0, 60))

        self.assertEqual([a.index for a in artifacts], [1, 2, 3])
        self.assertEqual([a.name for a in artifacts], ["clipe_001.mp4", "clipe_002.mp4", "clipe_003.mp4"])
        self.assertTrue(all(a.ok for a in artifacts))
        self.assertEqual(artifacts[1].data, b"clip-2")

    async def test_missing_clip_is_recorded_not_raised(self):
        for index in (1, 2, 4, 5):
            self.engine.files[f"clipe_{index:03d}.mp4"] = b"data"

        artifacts = await self.collector.collect(plan_segments(300.0, 60))

        self.assertEqual(len(artifacts), 5)
        self.assertEqual(sum(1 for a in artifacts if a.ok), 4)
        missing = artifacts[2]
        self.assertEqual(missing.index, 3)
        self.assertEqual(missing.outcome, ArtifactOutcome.NOT_FOUND)
        self.assertIsNone(missing.data)
        self.assertIn("clipe_003.mp4", missing.error)

    async def test_other_read_errors_are_recorded(self):
        async def broken_read(name):
            raise PermissionError("denied")

        self.engine.read_file = broken_read
        artifacts = await self.collector.collect(plan_segments(45.0, 60))

        self.assertEqual(len(artifacts), 1)
        self.assertEqual(artifacts[0].outcome, ArtifactOutcome.ERROR)
        self.assertFalse(artifacts[0].ok)


if __name__ == "__main__":
    unittest.main()
