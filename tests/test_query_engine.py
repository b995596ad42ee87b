"""Tests for search, filter and sort in core/query_engine.py."""

import pytest

from edzip_cli.core.query_engine import (
    SearchMode,
    filter_records,
    is_chosung_query,
    run_query,
    sort_records,
)
from edzip_cli.models.config import SortOrder
from edzip_cli.models.record import Record
from edzip_cli.utils.hangul import extract_chosung


def _rec(name: str = "", created_at: str = "", **kwargs) -> Record:
    return Record(name=name, created_at=created_at, **kwargs)


def _names(records):
    return [r.name for r in records]


@pytest.fixture()
def schools():
    return [
        _rec("안양초", "2024-01-01"),
        _rec("안중초", "2024-06-01"),
        _rec("서울신답초", "2023-03-02"),
        _rec("Safety Checklist 2024", "2022-12-31"),
    ]


class TestModeSelection:
    def test_empty_term_returns_whole_store(self, schools):
        matched, mode = filter_records(schools, "")
        assert mode is SearchMode.ALL
        assert matched == schools

    def test_chosung_term(self, schools):
        _, mode = filter_records(schools, "ㅇㅊ")
        assert mode is SearchMode.CHOSUNG

    @pytest.mark.parametrize("term", ["ㅇ초", "안양", "ㅇㅊ ", "abc", "ㄳ"])
    def test_everything_else_is_fuzzy(self, schools, term):
        _, mode = filter_records(schools, term)
        assert mode is SearchMode.FUZZY

    def test_is_chosung_query(self):
        assert is_chosung_query("ㅇㅇㅋㄹ")
        assert not is_chosung_query("")


class TestChosungSearch:
    def test_substring_of_initials_matches_both(self, schools):
        matched, _ = filter_records(schools, "ㅇㅊ")
        assert _names(matched) == ["안양초", "안중초"]

    def test_exact_initials(self, schools):
        matched, _ = filter_records(schools, "ㅇㅇㅊ")
        assert _names(matched) == ["안양초"]

    def test_no_match(self, schools):
        matched, _ = filter_records(schools, "ㅇㅋ")
        assert matched == []

    def test_matches_exactly_the_containing_records(self, schools):
        for term in ["ㅇ", "ㅊ", "ㅅㅇ", "ㅈㅊ", "ㅅㅅㄷㅊ", "ㅎ"]:
            matched, _ = filter_records(schools, term)
            expected = [r for r in schools if term in extract_chosung(r.name)]
            assert matched == expected

    def test_keeps_store_order(self):
        records = [_rec("중앙초"), _rec("안양초"), _rec("양천초")]
        matched, _ = filter_records(records, "ㅇㅊ")
        assert _names(matched) == ["중앙초", "안양초", "양천초"]

    def test_missing_name_never_matches(self):
        matched, _ = filter_records([_rec("")], "ㅇ")
        assert matched == []


class TestFuzzySearch:
    def test_exact_substring(self):
        records = [_rec("안양초 체크리스트"), _rec("안중초 증빙자료")]
        matched, _ = filter_records(records, "체크리스트")
        assert _names(matched) == ["안양초 체크리스트"]

    def test_typo_tolerated(self):
        records = [_rec("안양초 체크리스트")]
        matched, _ = filter_records(records, "체크리스크")
        assert _names(matched) == ["안양초 체크리스트"]

    def test_case_insensitive(self, schools):
        matched, _ = filter_records(schools, "checklist")
        assert _names(matched) == ["Safety Checklist 2024"]

    def test_match_location_is_irrelevant(self):
        records = [_rec("점검표"), _rec("2024학년도 1학기 안전 점검표")]
        matched, _ = filter_records(records, "점검표")
        assert len(matched) == 2

    def test_drifting_beyond_threshold_drops_record(self, schools):
        matched, _ = filter_records(schools, "checklist")
        assert _names(matched) == ["Safety Checklist 2024"]
        matched, _ = filter_records(schools, "cxexkxixx")
        assert matched == []

    def test_appended_characters_count_as_errors(self):
        records = [_rec("안양초"), _rec("양식")]
        matched, _ = filter_records(records, "안양초XYZWQRST")
        assert matched == []

    def test_short_name_inside_long_term_is_not_a_match(self):
        records = [_rec("양식")]
        matched, _ = filter_records(records, "2024 학교 안전 점검 양식 모음")
        assert matched == []

    def test_small_overshoot_still_matches(self):
        matched, _ = filter_records([_rec("안양초")], "안양초x")
        assert _names(matched) == ["안양초"]

    def test_better_matches_first(self):
        records = [_rec("체크리스타 모음"), _rec("학교 체크리스트")]
        matched, _ = filter_records(records, "체크리스트")
        assert _names(matched) == ["학교 체크리스트", "체크리스타 모음"]

    def test_equal_scores_keep_store_order(self):
        first, second = _rec("점검표", "2024-01-01"), _rec("점검표", "2023-01-01")
        matched, _ = filter_records([first, second], "점검표")
        assert matched[0] is first
        assert matched[1] is second

    def test_zero_similarity_never_returned(self):
        records = [_rec(""), _rec("xyz")]
        matched, _ = filter_records(records, "체크", threshold=1.0)
        assert matched == []

    def test_strict_threshold(self):
        records = [_rec("안양초 체크리스트")]
        assert filter_records(records, "체크리스크", threshold=0.0)[0] == []
        assert len(filter_records(records, "체크리스트", threshold=0.0)[0]) == 1


class TestSortRecords:
    def test_name_ascending(self):
        records = [_rec("b"), _rec("A"), _rec("나"), _rec("가"), _rec("")]
        assert _names(sort_records(records, SortOrder.NAME)) == ["", "A", "b", "가", "나"]

    def test_name_ignores_accents(self):
        records = [_rec("f"), _rec("é"), _rec("d")]
        assert _names(sort_records(records, SortOrder.NAME)) == ["d", "é", "f"]

    def test_upload_asc(self, schools):
        ordered = sort_records(schools, SortOrder.UPLOAD_ASC)
        assert _names(ordered) == [
            "Safety Checklist 2024",
            "서울신답초",
            "안양초",
            "안중초",
        ]

    def test_upload_desc(self, schools):
        ordered = sort_records(schools, SortOrder.UPLOAD_DESC)
        assert _names(ordered) == [
            "안중초",
            "안양초",
            "서울신답초",
            "Safety Checklist 2024",
        ]

    def test_reverse_of_asc_is_desc(self, schools):
        asc = sort_records(schools, SortOrder.UPLOAD_ASC)
        desc = sort_records(schools, SortOrder.UPLOAD_DESC)
        assert list(reversed(asc)) == desc

    @pytest.mark.parametrize("order", list(SortOrder))
    def test_idempotent(self, schools, order):
        once = sort_records(schools, order)
        assert sort_records(once, order) == once

    @pytest.mark.parametrize("order", [SortOrder.UPLOAD_ASC, SortOrder.UPLOAD_DESC])
    def test_invalid_dates_sort_last_in_input_order(self, order):
        records = [
            _rec("bad-1", "garbage"),
            _rec("good-1", "2024-01-01"),
            _rec("none", ""),
            _rec("good-2", "2024-02-01"),
        ]
        ordered = sort_records(records, order)
        assert _names(ordered)[2:] == ["bad-1", "none"]

    def test_ties_keep_input_order(self):
        records = [_rec("x", "2024-01-01"), _rec("y", "2024-01-01")]
        assert _names(sort_records(records, SortOrder.UPLOAD_DESC)) == ["x", "y"]
        assert _names(sort_records(records, SortOrder.UPLOAD_ASC)) == ["x", "y"]

    def test_does_not_mutate_input(self, schools):
        snapshot = list(schools)
        sort_records(schools, SortOrder.NAME)
        assert schools == snapshot

    def test_accepts_string_order(self, schools):
        assert sort_records(schools, "name") == sort_records(schools, SortOrder.NAME)


class TestRunQuery:
    def test_empty_term_full_length(self, schools):
        result = run_query(schools, "")
        assert len(result) == len(schools)
        assert result.total == len(schools)
        assert result.mode is SearchMode.ALL

    def test_default_sort_is_latest_first(self, schools):
        result = run_query(schools)
        assert result.sort_order is SortOrder.UPLOAD_DESC
        assert result.records[0].name == "안중초"

    def test_chosung_then_upload_asc(self):
        records = [_rec("안중초", "2024-06-01"), _rec("안양초", "2024-01-01")]
        result = run_query(records, "ㅇㅊ", SortOrder.UPLOAD_ASC)
        assert _names(result.records) == ["안양초", "안중초"]

    def test_no_results_flag(self, schools):
        result = run_query(schools, "ㅋㅋㅋ")
        assert result.is_empty
        assert result.records == ()

    def test_empty_store(self):
        result = run_query([], "anything")
        assert result.is_empty
        assert result.total == 0

    def test_store_is_untouched(self, store):
        before = store.records
        run_query(store.records, "체크", SortOrder.NAME)
        assert store.records == before
