import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from noon_minutes import cli
from noon_minutes.models import CrawlResult, ListingRecord
from noon_minutes.snapshot import FileSnapshotCache


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.snapshot = Path(self._tmp.name) / "noon_products.json"
        self._env = mock.patch.dict(os.environ, {"NOON_SNAPSHOT_PATH": str(self.snapshot)})
        self._env.start()

    def tearDown(self):
        self._env.stop()
        self._tmp.cleanup()

    def test_list_strategies(self):
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(cli.main(["--list-strategies"]), 0)
        text = out.getvalue()
        self.assertLess(text.index("markup"), text.index("pattern"))
        self.assertLess(text.index("pattern"), text.index("rendered"))
        self.assertIn("primary_template", text)

    def test_show_snapshot_missing(self):
        err = io.StringIO()
        with redirect_stderr(err), redirect_stdout(io.StringIO()):
            self.assertEqual(cli.main(["--show-snapshot"]), 1)
        self.assertIn("No snapshot", err.getvalue())

    def test_show_snapshot(self):
        FileSnapshotCache(self.snapshot).write(
            CrawlResult(records=(ListingRecord(product_id="N1", name="Figs", size="250g", price="9.00"),))
        )
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(cli.main(["--show-snapshot"]), 0)
        self.assertIn("[N1] Figs (250g) - 9.00", out.getvalue())

    def test_crawl_below_threshold_without_snapshot_exits_2(self):
        async def fake_crawl_and_commit(crawler, cache, threshold):
            from noon_minutes.errors import InsufficientDataError

            raise InsufficientDataError(1, threshold)

        err = io.StringIO()
        with mock.patch.object(cli, "crawl_and_commit", fake_crawl_and_commit), redirect_stderr(err):
            self.assertEqual(cli.main(["--crawl", "--no-render"]), 2)
        self.assertIn("Not enough data", err.getvalue())

    def test_crawl_json_output(self):
        from noon_minutes.pipeline import CommitOutcome

        result = CrawlResult(records=(ListingRecord(product_id="N1", name="Figs"),))

        async def fake_crawl_and_commit(crawler, cache, threshold):
            return CommitOutcome(result=result, persisted=False, from_snapshot=True, fresh_pages_covered=0)

        out = io.StringIO()
        with mock.patch.object(cli, "crawl_and_commit", fake_crawl_and_commit), redirect_stdout(out):
            self.assertEqual(cli.main(["--crawl", "--json", "--no-render"]), 0)
        body = json.loads(out.getvalue())
        self.assertEqual(body["products"][0]["productId"], "N1")
        self.assertEqual(body["pagesCovered"], 1)
