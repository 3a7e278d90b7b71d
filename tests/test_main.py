"""
Tests for the command-line entry point.
"""

import json
import os
import tempfile
import unittest
from unittest.mock import patch

from trailnav.__main__ import main

from .common import make_route


class TestMain(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.route_path = os.path.join(self.tmpdir.name, "route.json")
        with open(self.route_path, "w") as f:
            json.dump(make_route().to_dict(), f)
        self.log_path = os.path.join(self.tmpdir.name, "nav.log")

    def tearDown(self):
        self.tmpdir.cleanup()

    def write_trace(self, points):
        path = os.path.join(self.tmpdir.name, "trace.json")
        entries = [{"elapsed": i * 0.1, "location": {"lat": lat, "lon": lon}}
                   for i, (lat, lon) in enumerate(points)]
        with open(path, "w") as f:
            json.dump({"recorded_at": "2026-01-01T00:00:00", "trace": entries}, f)
        return path

    def test_destination_required_without_route(self):
        with self.assertRaises(SystemExit):
            main([])

    def test_bad_destination_rejected(self):
        with self.assertRaises(SystemExit):
            main(["north-ish"])

    def test_preview_saved_route(self):
        with patch("builtins.print") as printed:
            self.assertEqual(main(["--route", self.route_path, "--preview",
                                   "--log", self.log_path]), 0)
        output = "\n".join(str(c.args[0]) for c in printed.call_args_list if c.args)
        self.assertIn("Head south on Herbert Macaulay Way", output)

    def test_missing_route_file(self):
        self.assertEqual(main(["--route", "/nonexistent/route.json", "--log", self.log_path]), 1)

    def test_missing_playback_file(self):
        self.assertEqual(main(["6.45,3.43", "--playback", "/nonexistent/trace.json"]), 1)

    def test_playback_navigates_saved_route(self):
        trace = self.write_trace([(0, 0), (6.5244, 3.3792), (6.4541, 3.4316)])
        code = main(["--route", self.route_path, "--playback", trace, "--speed", "10",
                     "--log", self.log_path, "--quiet"])
        self.assertEqual(code, 0)
        with open(self.log_path) as f:
            log = f.read()
        self.assertIn("ArrivedAtDestination", log)

    def test_playback_ending_early_reports_not_arrived(self):
        trace = self.write_trace([(0, 0), (6.5244, 3.3792)])
        code = main(["--route", self.route_path, "--playback", trace, "--speed", "10",
                     "--log", self.log_path, "--quiet"])
        self.assertEqual(code, 2)

    @patch("trailnav.directions.DirectionsProvider.fetch")
    def test_fetches_and_saves_route(self, fetch):
        fetch.return_value = make_route()
        saved = os.path.join(self.tmpdir.name, "saved.json")
        code = main(["6.4541,3.4316", "--origin", "6.5244,3.3792", "--mode", "walking",
                     "--save-route", saved, "--preview", "--log", self.log_path])
        self.assertEqual(code, 0)
        with open(saved) as f:
            self.assertEqual(len(json.load(f)["legs"]), 1)
        args = fetch.call_args.args
        self.assertEqual(args[2], "walking")
