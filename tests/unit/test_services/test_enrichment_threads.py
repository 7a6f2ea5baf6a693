"""Tests for the batched metadata enrichment threads.

Threads are exercised by calling run() on the test thread, so every
signal is delivered synchronously.
"""

from __future__ import annotations

import sqlite3
import threading
import time
from unittest.mock import MagicMock

import pytest

from badgeviewer.core.badge import BadgeMetadata, BadgeSet, BadgeVersion, CatalogSnapshot, CompositeKey
from badgeviewer.core.errors import MetadataFetchError
from badgeviewer.services.badge_store import BadgeStore
from badgeviewer.services.enrichment.base_enrichment_thread import BATCH_SIZE
from badgeviewer.services.enrichment.metadata_enrichment_service import MetadataEnrichmentThread
from badgeviewer.services.enrichment.missing_metadata_service import MissingMetadataThread
from badgeviewer.services.metadata_service import BadgeMetadataService

KEY_A = CompositeKey("alpha", "1")
KEY_B = CompositeKey("bravo", "1")
KEY_C = CompositeKey("charlie", "1")


def _fake_service(fetch=None) -> MagicMock:
    service = MagicMock()
    service.fetch_metadata.side_effect = fetch or (
        lambda set_id, version_id, force=False: BadgeMetadata(usage_stats=f"{len(set_id)} users")
    )
    return service


def _enrichment_thread(badges, store, cache, service, force_refresh=False) -> MetadataEnrichmentThread:
    thread = MetadataEnrichmentThread()
    thread.configure(badges, store, cache, service, force_refresh=force_refresh)
    return thread


@pytest.fixture
def badges(badge_factory) -> list:
    return [badge_factory(k.set_id, with_metadata=False) for k in (KEY_A, KEY_B, KEY_C)]


# ---------------------------------------------------------------------------
# MetadataEnrichmentThread
# ---------------------------------------------------------------------------


class TestMetadataEnrichmentThread:
    """Tests for cache pre-fill and remote fetching."""

    def test_cache_hits_are_announced_before_any_fetch(self, qapp, database, badges) -> None:
        database.upsert_badge_metadata("alpha", "1", BadgeMetadata(date_added="1 June 2024"))
        store = BadgeStore(badges)
        updates: list[list] = []
        updates_at_fetch: list[int] = []

        def fetch(set_id, version_id, force=False):
            updates_at_fetch.append(len(updates))
            return BadgeMetadata(usage_stats="3 users")

        thread = _enrichment_thread(badges, store, database, _fake_service(fetch))
        thread.metadata_updated.connect(updates.append)
        thread.run()

        assert updates[0] == [KEY_A]
        assert updates_at_fetch == [1, 1]
        assert thread.cache_hits == 1
        assert store.get(KEY_A).metadata.date_added == "1 June 2024"
        assert store.get(KEY_B).metadata.usage_stats == "3 users"

    def test_only_misses_are_fetched(self, qapp, database, badges) -> None:
        database.upsert_badge_metadata("bravo", "1", BadgeMetadata())
        service = _fake_service()

        _enrichment_thread(badges, BadgeStore(badges), database, service).run()

        fetched = {call.args[:2] for call in service.fetch_metadata.call_args_list}
        assert fetched == {("alpha", "1"), ("charlie", "1")}

    def test_cache_read_failure_fetches_everything(self, qapp, badges) -> None:
        cache = MagicMock()
        cache.get_all_cached_metadata.side_effect = sqlite3.OperationalError("database is locked")
        service = _fake_service()
        finished = MagicMock()

        thread = _enrichment_thread(badges, BadgeStore(badges), cache, service)
        thread.finished_enrichment.connect(finished)
        thread.run()

        assert service.fetch_metadata.call_count == 3
        finished.assert_called_once_with(3, 0)

    def test_single_failure_does_not_stop_the_batch(self, qapp, database, badges) -> None:
        def fetch(set_id, version_id, force=False):
            if set_id == "bravo":
                raise MetadataFetchError("bravo/1", "BadgeBase returned status 500")
            return BadgeMetadata(usage_stats="1 users")

        store = BadgeStore(badges)
        finished = MagicMock()
        thread = _enrichment_thread(badges, store, database, _fake_service(fetch))
        thread.finished_enrichment.connect(finished)
        thread.run()

        finished.assert_called_once_with(2, 1)
        assert store.get(KEY_A).metadata is not None
        assert store.get(KEY_B).metadata is None
        assert store.get(KEY_C).metadata is not None

    def test_items_run_in_batches_of_ten(self, qapp, database, badge_factory) -> None:
        badges = [badge_factory(f"set-{i:02d}", with_metadata=False) for i in range(25)]
        lock = threading.Lock()
        active = 0
        peak = 0

        def fetch(set_id, version_id, force=False):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with lock:
                active -= 1
            return BadgeMetadata(usage_stats="1 users")

        progress: list[tuple] = []
        thread = _enrichment_thread(badges, BadgeStore(badges), database, _fake_service(fetch))
        thread.progress.connect(lambda message, done, total: progress.append((done, total)))
        thread.run()

        assert BATCH_SIZE == 10
        assert progress == [(10, 25), (20, 25), (25, 25)]
        assert peak <= BATCH_SIZE

    def test_progress_message_names_last_item(self, qapp, database, badges) -> None:
        messages: list[str] = []
        thread = _enrichment_thread(badges, BadgeStore(badges), database, _fake_service())
        thread.progress.connect(lambda message, done, total: messages.append(message))
        thread.run()

        assert messages == ["Fetching badge metadata: charlie/1 (3/3)"]

    def test_force_refresh_fetches_cached_badges_and_replaces_fields(self, qapp, database, badge_factory) -> None:
        badges = [badge_factory("alpha", date_added="1 June 2024", usage_stats="5 users", position=4)]
        database.upsert_badge_metadata("alpha", "1", BadgeMetadata(date_added="1 June 2024"))
        store = BadgeStore(badges)
        service = _fake_service(lambda set_id, version_id, force=False: BadgeMetadata(date_added="2 June 2024"))

        thread = _enrichment_thread(badges, store, database, service, force_refresh=True)
        thread.run()

        service.fetch_metadata.assert_called_once_with("alpha", "1", force=True)
        metadata = store.get(KEY_A).metadata
        assert metadata.date_added == "2 June 2024"
        assert metadata.usage_stats is None
        assert metadata.position == 4
        assert thread.cache_hits == 0

    def test_cancel_stops_after_current_batch(self, qapp, database, badge_factory) -> None:
        badges = [badge_factory(f"set-{i:02d}", with_metadata=False) for i in range(30)]
        thread = _enrichment_thread(badges, BadgeStore(badges), database, None)

        def fetch(set_id, version_id, force=False):
            thread.cancel()
            return BadgeMetadata()

        thread._metadata_service = _fake_service(fetch)
        finished = MagicMock()
        thread.finished_enrichment.connect(finished)
        thread.run()

        finished.assert_called_once_with(10, 0)

    def test_empty_selection_finishes_immediately(self, qapp, database) -> None:
        finished = MagicMock()
        thread = _enrichment_thread([], BadgeStore(), database, _fake_service())
        thread.finished_enrichment.connect(finished)
        thread.run()

        finished.assert_called_once_with(0, 0)


# ---------------------------------------------------------------------------
# MissingMetadataThread
# ---------------------------------------------------------------------------


class TestMissingMetadataThread:
    """Tests for discovering never-enriched badges."""

    def test_fetches_only_uncached_catalog_badges(self, qapp, database, sample_snapshot) -> None:
        database.replace_catalog(sample_snapshot)
        database.upsert_badge_metadata("twitch-recap-2023", "1", BadgeMetadata())
        store = BadgeStore(sample_snapshot.flatten())
        service = _fake_service()
        discovered = MagicMock()

        thread = MissingMetadataThread()
        thread.configure(store, database, service)
        thread.missing_discovered.connect(discovered)
        thread.run()

        expected = [CompositeKey("glitchcon2020", "1"), CompositeKey("twitch-recap-2023", "2")]
        discovered.assert_called_once_with(expected)
        assert thread.discovered == expected
        assert service.fetch_metadata.call_count == 2
        assert store.get(CompositeKey("twitch-recap-2023", "1")).metadata is None

    def test_query_failure_emits_error(self, qapp) -> None:
        cache = MagicMock()
        cache.get_badges_missing_metadata.side_effect = sqlite3.OperationalError("no such table")
        error = MagicMock()
        finished = MagicMock()

        thread = MissingMetadataThread()
        thread.configure(BadgeStore(), cache, _fake_service())
        thread.error.connect(error)
        thread.finished_enrichment.connect(finished)
        thread.run()

        error.assert_called_once_with("no such table")
        finished.assert_not_called()


# ---------------------------------------------------------------------------
# Concurrent passes over one store
# ---------------------------------------------------------------------------


class TestConcurrentEnrichment:
    """An enrichment pass and a discovery pass sharing one store."""

    def test_passes_do_not_overwrite_each_other(self, qapp, database, badge_factory) -> None:
        enrich_badges = [badge_factory("alpha", with_metadata=False), badge_factory("bravo", with_metadata=False)]
        missing_badge = badge_factory("charlie", with_metadata=False)
        store = BadgeStore(enrich_badges + [missing_badge])

        # Only charlie is in the stored catalog, so discovery picks up exactly it
        database.replace_catalog(CatalogSnapshot(sets=(BadgeSet("charlie", (BadgeVersion("1"),)),)))

        client = MagicMock()

        def scrape(set_id, version_id):
            time.sleep(0.02)
            return BadgeMetadata(date_added="1 June 2024", usage_stats=f"{set_id} users")

        client.get_badge_metadata.side_effect = scrape
        service = BadgeMetadataService(database, client)

        enrich = _enrichment_thread(enrich_badges, store, database, service)
        discover = MissingMetadataThread()
        discover.configure(store, database, service)

        workers = [threading.Thread(target=enrich.run), threading.Thread(target=discover.run)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=10)

        for key in (KEY_A, KEY_B, KEY_C):
            assert store.get(key).metadata.usage_stats == f"{key.set_id} users"
        assert discover.discovered == [KEY_C]
