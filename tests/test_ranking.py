"""Tests for the move-to-half-front ranking."""

import pytest

from histrank.ranking import Entry, RankedList, Tag, lines_to_write, rank


def raws(ranked):
    return [e.raw for e in ranked]


def contains(*needles):
    return lambda line: any(n in line for n in needles)


class TestRank:
    def test_empty_input(self):
        assert len(rank([])) == 0

    def test_no_repeats_preserves_order(self):
        lines = ["ls\n", "cd ..\n", "pwd\n", "git status\n"]
        assert raws(rank(lines)) == ["ls", "cd ..", "pwd", "git status"]

    def test_trailing_whitespace_is_trimmed(self):
        assert raws(rank(["ls  \r\n", "ls\n"])) == ["ls"]

    def test_leading_whitespace_is_significant(self):
        assert raws(rank([" ls\n", "ls\n"])) == [" ls", "ls"]

    def test_whitespace_only_line_is_a_command(self):
        assert raws(rank(["   \n", "\n", "ls\n"])) == ["", "ls"]

    def test_repeat_swaps_with_half_index(self):
        ranked = rank(["a", "b", "c", "d", "c"])
        assert raws(ranked) == ["a", "c", "b", "d"]

    def test_repeat_at_front_is_noop(self):
        assert raws(rank(["ls", "cd ..", "ls", "ls", "pwd"])) == ["ls", "cd ..", "pwd"]

    def test_mixed_repeats(self):
        assert raws(rank(["a", "b", "a", "c", "a", "b"])) == ["b", "a", "c"]

    def test_frequent_command_climbs(self):
        lines = [f"cmd{i}" for i in range(16)] + ["cmd15"] * 4
        ranked = raws(rank(lines))
        # 15 -> 7 -> 3 -> 1 -> 0
        assert ranked[0] == "cmd15"
        assert ranked.count("cmd15") == 1

    def test_accepts_file_objects(self, tmp_path):
        path = tmp_path / "hist"
        path.write_text("ls\npwd\nls\n")
        with path.open() as f:
            assert raws(rank(f)) == ["ls", "pwd"]


class TestExclusion:
    def test_excluded_lines_are_tagged(self):
        ranked = rank(["ls\n", "secret token\n"], contains("secret"))
        assert [e.tag for e in ranked] == [Tag.KEEP, Tag.EXCLUDED]
        assert ranked[1].raw == "secret token"

    def test_excluded_lines_are_never_deduplicated(self):
        ranked = rank(["rm -rf x", "rm -rf x", "ls", "rm -rf x"], contains("rm"))
        assert raws(ranked) == ["rm -rf x", "rm -rf x", "ls", "rm -rf x"]
        assert len(ranked.kept()) == 1

    def test_excluded_line_does_not_match_kept_entry(self):
        ranked = rank(["ls\n", "ls \n"], lambda line: line == "ls \n")
        assert [(e.raw, e.tag) for e in ranked] == [("ls", Tag.KEEP), ("ls ", Tag.EXCLUDED)]

    def test_predicate_sees_untrimmed_line(self):
        seen = []

        def record(line):
            seen.append(line)
            return False

        rank(["ls  \n", "pwd\r\n"], record)
        assert seen == ["ls  \n", "pwd\r\n"]

    def test_excluded_entries_occupy_positions(self):
        # the repeat of "b" at index 2 swaps with index 1, which is the excluded entry
        ranked = rank(["a", "#x", "b", "b"], contains("#"))
        assert raws(ranked) == ["a", "b", "#x"]

    def test_lines_to_write_drops_excluded(self):
        ranked = rank(["ls", "secret", "pwd"], contains("secret"))
        assert ranked.lines_to_write() == ["ls", "pwd"]
        assert lines_to_write(list(ranked)) == ["ls", "pwd"]


class TestProperties:
    SEQUENCES = [
        [],
        ["a"],
        ["a", "a", "a"],
        ["a", "b", "a", "c", "a", "b"],
        ["x", "y", "z", "w", "z", "w", "w", "x", "q", "q", "y"],
        [f"c{i % 7}" for i in range(50)],
        [f"c{(i * i) % 11}" for i in range(80)],
    ]

    @pytest.mark.parametrize("lines", SEQUENCES)
    def test_at_most_one_kept_entry_per_value(self, lines):
        kept = [e.raw for e in rank(lines).kept()]
        assert len(kept) == len(set(kept))
        assert set(kept) == {line.rstrip() for line in lines}

    @pytest.mark.parametrize("lines", SEQUENCES)
    def test_ranking_is_idempotent(self, lines):
        predicate = contains("q")
        first = rank(lines, predicate)
        second = rank(raws(first), predicate)
        assert second == first

    @pytest.mark.parametrize("lines", SEQUENCES)
    def test_indexed_variant_matches_linear(self, lines):
        predicate = contains("y")
        assert rank(lines, predicate, indexed=True) == rank(lines, predicate)


class TestRankedList:
    def test_find_ignores_excluded(self):
        ranked = RankedList([Entry("ls", Tag.EXCLUDED), Entry("ls")])
        assert ranked.find("ls") == 1

    def test_append_rejects_duplicate_kept(self):
        ranked = RankedList([Entry("ls")])
        with pytest.raises(ValueError):
            ranked.append(Entry("ls"))

    def test_append_allows_duplicate_excluded(self):
        ranked = RankedList([Entry("ls", Tag.EXCLUDED)])
        ranked.append(Entry("ls", Tag.EXCLUDED))
        assert len(ranked) == 2

    @pytest.mark.parametrize("indexed", [False, True])
    def test_promote_swaps(self, indexed):
        ranked = RankedList([Entry(c) for c in "abcd"], indexed=indexed)
        assert ranked.promote(3) == 1
        assert raws(ranked) == ["a", "d", "c", "b"]
        assert ranked.find("b") == 3
        assert ranked.find("d") == 1

    def test_promote_at_front(self):
        ranked = RankedList([Entry("a")])
        assert ranked.promote(0) == 0
        assert raws(ranked) == ["a"]

    def test_equality(self):
        assert RankedList([Entry("a")]) == RankedList([Entry("a")], indexed=True)
        assert RankedList([Entry("a")]) == [Entry("a")]
        assert RankedList([Entry("a")]) != RankedList([Entry("a", Tag.EXCLUDED)])

    def test_rank_looks_up_each_line_once(self, monkeypatch):
        calls = []
        find = RankedList.find

        def counting_find(self, raw):
            calls.append(raw)
            return find(self, raw)

        monkeypatch.setattr(RankedList, "find", counting_find)
        rank(["a", "b", "a", "c", "secret"], contains("secret"))
        assert calls == ["a", "b", "a", "c"]
