import tempfile
import threading
import time
import unittest
from pathlib import Path

from ddb_mpris.engine import EngineApi, TagRecord, TrackHandle
from ddb_mpris.errors import MissingCapabilityError
from ddb_mpris.metadata import (
    build_track_metadata,
    extract_metadata,
    iter_tags,
    normalize_uri,
    parse_duration,
    read_track_tags,
    track_id_path,
)


def _chain(*pairs):
    head = None
    for key, value in reversed(pairs):
        head = TagRecord(key, value, head)
    return head


class TestParseDuration(unittest.TestCase):
    def test_reference_values(self) -> None:
        cases = [
            ("0:10", 0),
            ("1:02", 60_000_000),
            ("3:25", 180_000_000),
            ("10:00", 600_000_000),
            ("1:02:03", 240_000_000),
            ("42", 0),
        ]
        for value, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(parse_duration(value), expected)

    def test_bad_field_raises(self) -> None:
        for value in ("x:10", "", "1::2", "1.5:00", " 1:00", "1:00 ", "1_0:00", "١:00"):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_duration(value)


class TestNormalizeUri(unittest.TestCase):
    def test_plain_path_gets_file_scheme(self) -> None:
        self.assertEqual(
            normalize_uri("/music/a.flac"),
            ("/music/a.flac", "file:///music/a.flac"),
        )

    def test_file_uri_kept(self) -> None:
        self.assertEqual(
            normalize_uri("file:///music/a.flac"),
            ("/music/a.flac", "file:///music/a.flac"),
        )


class TestExtractMetadata(unittest.TestCase):
    def test_trackid_always_present(self) -> None:
        for identifier in (0, 7, 140234566):
            with self.subTest(identifier=identifier):
                meta = extract_metadata([], identifier)
                self.assertEqual(meta, {"mpris:trackid": f"/org/mpris/MediaPlayer2/tracks/{identifier}"})
        self.assertEqual(track_id_path(3), "/org/mpris/MediaPlayer2/tracks/3")

    def test_keys_match_case_insensitively(self) -> None:
        for key in ("Artist", "ARTIST", "artist"):
            with self.subTest(key=key):
                meta = extract_metadata([(key, "Low")], 1)
                self.assertEqual(meta["xesam:artist"], "Low")

    def test_string_tags(self) -> None:
        meta = extract_metadata(
            [
                ("title", "Words"),
                ("Album Artist", "Various"),
                ("album", "Things We Lost"),
                ("genre", "slowcore"),
                ("tracknumber", "3"),
            ],
            1,
        )
        self.assertEqual(meta["xesam:title"], "Words")
        self.assertEqual(meta["xesam:albumArtist"], "Various")
        self.assertEqual(meta["xesam:album"], "Things We Lost")
        self.assertNotIn("genre", meta)
        self.assertEqual(len(meta), 4)

    def test_bad_duration_only_drops_length(self) -> None:
        meta = extract_metadata([(":DURATION", "nope"), ("title", "Words")], 1)
        self.assertNotIn("mpris:length", meta)
        self.assertEqual(meta["xesam:title"], "Words")

    def test_duration(self) -> None:
        meta = extract_metadata([(":duration", "4:05")], 1)
        self.assertEqual(meta["mpris:length"], 240_000_000)

    def test_uri_with_cover_art(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            album = Path(tmpdir)
            (album / "01.flac").write_bytes(b"x")
            (album / "Folder.JPG").write_bytes(b"x")
            meta = extract_metadata([(":URI", str(album / "01.flac"))], 1)
            self.assertEqual(meta["xesam:url"], f"file://{album / '01.flac'}")
            self.assertEqual(meta["mpris:artUrl"], f"file://{album / 'Folder.JPG'}")

    def test_uri_without_cover_art(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            track = Path(tmpdir) / "01.flac"
            track.write_bytes(b"x")
            meta = extract_metadata([(":uri", f"file://{track}")], 1)
            self.assertEqual(meta["xesam:url"], f"file://{track}")
            self.assertNotIn("mpris:artUrl", meta)


class _LockCounter:
    def __init__(self) -> None:
        self.held = False
        self.locks = 0
        self.unlocks = 0

    def lock(self) -> None:
        self.held = True
        self.locks += 1

    def unlock(self) -> None:
        self.held = False
        self.unlocks += 1


class TestReadTrackTags(unittest.TestCase):
    def test_walks_chain_under_lock(self) -> None:
        counter = _LockCounter()
        head = _chain(("title", "Words"), ("artist", "Low"))
        seen_held = []

        def get_head(track):
            seen_held.append(counter.held)
            return head

        api = EngineApi(get_metadata_head=get_head, lock=counter.lock, unlock=counter.unlock)
        tags = read_track_tags(api, TrackHandle(1))

        self.assertEqual(tags, [("title", "Words"), ("artist", "Low")])
        self.assertEqual(seen_held, [True])
        self.assertEqual((counter.locks, counter.unlocks), (1, 1))
        self.assertFalse(counter.held)

    def test_releases_lock_when_traversal_fails(self) -> None:
        counter = _LockCounter()

        def get_head(track):
            raise RuntimeError("engine went away")

        api = EngineApi(get_metadata_head=get_head, lock=counter.lock, unlock=counter.unlock)
        with self.assertRaises(RuntimeError):
            read_track_tags(api, TrackHandle(1))
        self.assertFalse(counter.held)
        self.assertEqual(counter.unlocks, 1)

    def test_missing_metadata_head(self) -> None:
        counter = _LockCounter()
        api = EngineApi(lock=counter.lock, unlock=counter.unlock)
        with self.assertRaises(MissingCapabilityError):
            read_track_tags(api, TrackHandle(1))
        self.assertEqual(counter.locks, 0)

    def test_iter_tags_empty(self) -> None:
        self.assertEqual(list(iter_tags(None)), [])

    def test_concurrent_reads_are_serialized(self) -> None:
        engine_lock = threading.Lock()
        guard = threading.Lock()
        active = []
        peak = []
        head = _chain(("title", "Words"))

        def get_head(track):
            with guard:
                active.append(track.identifier)
                peak.append(len(active))
            time.sleep(0.05)
            with guard:
                active.remove(track.identifier)
            return head

        api = EngineApi(get_metadata_head=get_head, lock=engine_lock.acquire, unlock=engine_lock.release)
        results = {}

        def read(identifier):
            results[identifier] = read_track_tags(api, TrackHandle(identifier))

        threads = [threading.Thread(target=read, args=(i,)) for i in (1, 2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        self.assertEqual(results, {1: [("title", "Words")], 2: [("title", "Words")]})
        self.assertEqual(peak, [1, 1])
        self.assertFalse(engine_lock.locked())


class TestBuildTrackMetadata(unittest.TestCase):
    def test_null_head_gives_only_trackid(self) -> None:
        counter = _LockCounter()
        api = EngineApi(get_metadata_head=lambda t: None, lock=counter.lock, unlock=counter.unlock)
        meta = build_track_metadata(api, TrackHandle(9), 9)
        self.assertEqual(meta, {"mpris:trackid": "/org/mpris/MediaPlayer2/tracks/9"})

    def test_no_track_skips_engine(self) -> None:
        meta = build_track_metadata(EngineApi(), None, 0)
        self.assertEqual(meta, {})

    def test_full_track(self) -> None:
        counter = _LockCounter()
        head = _chain(("Title", "Words"), (":duration", "3:25"), ("comment", "x"))
        api = EngineApi(get_metadata_head=lambda t: head, lock=counter.lock, unlock=counter.unlock)
        meta = build_track_metadata(api, TrackHandle(5), 5)
        self.assertEqual(
            meta,
            {
                "mpris:trackid": "/org/mpris/MediaPlayer2/tracks/5",
                "xesam:title": "Words",
                "mpris:length": 180_000_000,
            },
        )


if __name__ == "__main__":
    unittest.main()
