"""Tests for hash extraction, dedup and junk/episode/season filters."""

from __future__ import annotations

import random

import pytest

from nyaarr.domain.entities import TorrentRecord
from nyaarr.infrastructure.matching.release_filters import (
    ReleaseMatcher,
    deduplicate_by_info_hash,
    detect_season,
    extract_info_hash,
    has_season_tag,
    is_junk_release,
    matches_episode,
    matches_season,
)


def _record(name: str, info_hash: str, seeders: int = 1) -> TorrentRecord:
    return TorrentRecord(
        name=name,
        magnet_uri=f"magnet:?xt=urn:btih:{info_hash}&dn=x",
        info_hash=info_hash,
        seeders=seeders,
    )


# ---------------------------------------------------------------------------
# Hashes and dedup
# ---------------------------------------------------------------------------


class TestExtractInfoHash:
    def test_lowercases(self) -> None:
        magnet = "magnet:?xt=urn:btih:ABCDEF0123456789&dn=Show&tr=udp://t"
        assert extract_info_hash(magnet) == "abcdef0123456789"

    def test_case_insensitive_prefix(self) -> None:
        assert extract_info_hash("magnet:?xt=urn:BTIH:ff00") == "ff00"

    @pytest.mark.parametrize("magnet", ["", "magnet:?dn=nohash", "https://nyaa.si"])
    def test_missing_hash(self, magnet: str) -> None:
        assert extract_info_hash(magnet) is None


class TestDeduplicate:
    def test_keeps_first_seen(self) -> None:
        first = _record("first", "aaa", seeders=1)
        second = _record("second", "aaa", seeders=99)
        assert deduplicate_by_info_hash([first, second]) == [first]

    def test_hash_comparison_is_case_insensitive(self) -> None:
        out = deduplicate_by_info_hash([_record("a", "ABC"), _record("b", "abc")])
        assert len(out) == 1

    def test_records_without_hash_are_dropped(self) -> None:
        bad = TorrentRecord(name="x", magnet_uri="magnet:?dn=x", info_hash="")
        assert deduplicate_by_info_hash([bad]) == []

    def test_hash_set_independent_of_input_order(self) -> None:
        records = [_record(f"r{i}", h) for i, h in enumerate("abcabcdd")]
        shuffled = records[:]
        random.Random(7).shuffle(shuffled)

        hashes = {r.info_hash for r in deduplicate_by_info_hash(records)}
        hashes_shuffled = [r.info_hash for r in deduplicate_by_info_hash(shuffled)]

        assert hashes == {"a", "b", "c", "d"}
        assert sorted(hashes_shuffled) == ["a", "b", "c", "d"]


# ---------------------------------------------------------------------------
# Junk filter
# ---------------------------------------------------------------------------


class TestIsJunkRelease:
    @pytest.mark.parametrize(
        "name",
        [
            "[Group] Kimetsu no Yaiba Recap [1080p]",
            "Attack on Titan OVA 3",
            "[Group] Show - Special 01",
            "Show PV2",
            "Show Preview",
            "Show Trailer",
            "[Group] Show NCOP",
            "[Group] Show NCED 2",
            "Spy x Family Mini Anime 05",
        ],
    )
    def test_junk(self, name: str) -> None:
        assert is_junk_release(name)

    def test_regular_episode(self) -> None:
        assert not is_junk_release("[SubsPlease] Kimetsu no Yaiba - 07 (1080p)")


# ---------------------------------------------------------------------------
# Episode filter
# ---------------------------------------------------------------------------


class TestMatchesEpisode:
    @pytest.mark.parametrize(
        "name",
        [
            "[SubsPlease] Kimetsu no Yaiba - 07 (1080p) [ABCD1234].mkv",
            "Kimetsu no Yaiba E07 1080p",
            "Kimetsu no Yaiba S01E07 [1080p]",
            "Kimetsu no Yaiba Episode 7",
            "Kimetsu no Yaiba - 7",
            "[Group] Kimetsu no Yaiba [07v2]",
        ],
    )
    def test_episode_markers(self, name: str) -> None:
        assert matches_episode(name, 7)

    @pytest.mark.parametrize(
        "name",
        [
            "[SubsPlease] Kimetsu no Yaiba - 17 (1080p)",
            "[SubsPlease] Kimetsu no Yaiba - 06 (720p)",
            "[SubsPlease] Kimetsu no Yaiba - 70 (1080p)",
        ],
    )
    def test_other_episodes(self, name: str) -> None:
        assert not matches_episode(name, 7)

    @pytest.mark.parametrize("episode", [1, 6, 12])
    def test_batch_range_contains_episode(self, episode: int) -> None:
        assert matches_episode("[Judas] Kimetsu no Yaiba 01-12 [BD 1080p]", episode)

    def test_batch_range_excludes_outside(self) -> None:
        assert not matches_episode("[Judas] Kimetsu no Yaiba 01~12 [BD 1080p]", 13)

    def test_tilde_range(self) -> None:
        assert matches_episode("Show 13 ~ 26 [1080p]", 20)

    def test_resolution_is_not_a_range_end(self) -> None:
        assert not matches_episode("Show - 05 - 1080p", 7)

    @pytest.mark.parametrize(
        "name",
        [
            "[Group] Show - 07[1080p].mkv",
            "Show.07.1080p.WEB.x264",
            "[Group] Show - 07(1080p)",
        ],
    )
    def test_number_glued_to_bracket_or_dot(self, name: str) -> None:
        assert matches_episode(name, 7)

    @pytest.mark.parametrize(
        "name",
        [
            "[SubsPlease] Spy x Family Season 2 - 07 (1080p) [ABCD1234].mkv",
            "[Judas] Oshi no Ko S2 - 07 [1080p].mkv",
        ],
    )
    @pytest.mark.parametrize("episode", [2, 3, 6])
    def test_season_number_is_not_a_range_start(self, name: str, episode: int) -> None:
        assert not matches_episode(name, episode)

    @pytest.mark.parametrize(
        "name",
        [
            "[SubsPlease] Spy x Family Season 2 - 07 (1080p) [ABCD1234].mkv",
            "[Judas] Oshi no Ko S2 - 07 [1080p].mkv",
        ],
    )
    def test_season_tagged_episode_still_matches(self, name: str) -> None:
        assert matches_episode(name, 7)

    @pytest.mark.parametrize(
        "name",
        ["[Group] Show - 05 [1A2B3C4D]", "[Group] Show - 05 [AAC 5.1]"],
    )
    def test_crc_and_audio_digits_are_not_episodes(self, name: str) -> None:
        assert not matches_episode(name, 1)

    @pytest.mark.parametrize("name", ["Show (Complete) [1080p]", "Show Batch 1080p"])
    def test_complete_or_batch_words(self, name: str) -> None:
        assert matches_episode(name, 42)


# ---------------------------------------------------------------------------
# Season filter
# ---------------------------------------------------------------------------


class TestDetectSeason:
    @pytest.mark.parametrize(
        ("name", "season"),
        [
            ("Show S2 - 05 [1080p]", 2),
            ("Show S01E07", 1),
            ("Show Season 3 - 01", 3),
            ("Show 2nd Season - 03", 2),
            ("Show 3rd Season", 3),
            ("Show 4th Season", 4),
        ],
    )
    def test_explicit_markers(self, name: str, season: int) -> None:
        assert detect_season(name) == season

    def test_unmarked(self) -> None:
        assert detect_season("[SubsPlease] Show - 07 (1080p)") is None

    def test_keyword(self) -> None:
        assert detect_season("Kimetsu no Yaiba Mugen Train - 01", {"Mugen Train": 2}) == 2

    def test_keyword_match_is_case_insensitive(self) -> None:
        assert detect_season("naruto shippuden 100", {"Shippuden": 2}) == 2

    def test_explicit_marker_wins_over_keyword(self) -> None:
        assert detect_season("Show Season 4 Mugen Train", {"Mugen Train": 2}) == 4


class TestMatchesSeason:
    def test_second_season_rejected_for_season_one(self) -> None:
        assert not matches_season("Kimetsu no Yaiba 2nd Season - 01", 1)

    def test_unmarked_included_for_season_one(self) -> None:
        assert matches_season("[SubsPlease] Kimetsu no Yaiba - 01 (1080p)", 1)

    def test_matching_marker_included(self) -> None:
        assert matches_season("Show S02E05", 2)

    def test_keyword_rejects_other_season(self) -> None:
        assert not matches_season("Show Swordsmith Village - 01", 1, {"Swordsmith Village": 3})


class TestHasSeasonTag:
    @pytest.mark.parametrize("name", ["Show S01E01", "Show Season 2", "show season2"])
    def test_tagged(self, name: str) -> None:
        assert has_season_tag(name)

    def test_untagged(self) -> None:
        assert not has_season_tag("[SubsPlease] Show - 01 (1080p)")


class TestReleaseMatcher:
    def test_uses_configured_keywords(self) -> None:
        matcher = ReleaseMatcher({"Entertainment District": 2})
        assert not matcher.matches_season("Show Entertainment District - 01", 1)
        assert matcher.matches_season("Show Entertainment District - 01", 2)

    def test_delegates_filters(self) -> None:
        matcher = ReleaseMatcher()
        assert matcher.is_junk("Show Recap")
        assert matcher.matches_episode("Show - 03", 3)
        assert len(matcher.deduplicate([_record("a", "x"), _record("b", "x")])) == 1
