"""
Tests for the leaderboard arithmetic and the input rules
(no database needed)
"""

import sys

from group_rank.errors import ValidationError
from group_rank.rankings import apply_result, sort_table
from group_rank.rules import group_players, match_players, normalize_group_code, valid_group_code


def _raises_validation(fn, *args) -> bool:
    try:
        fn(*args)
    except ValidationError:
        return True
    return False


def test_apply_result_winner_gains_one():
    print("🧪 Testing winner increment...")
    table = {"Alice": 0, "Bob": 0}
    updated = apply_result(table, "Alice", ["Bob"])
    assert updated == {"Alice": 1, "Bob": 0}
    assert list(updated) == ["Alice", "Bob"]
    # Input is left alone
    assert table == {"Alice": 0, "Bob": 0}
    print("    ✅ Winner +1, loser unchanged")


def test_apply_result_reorders_by_score():
    print("🧪 Testing leaderboard reorder...")
    updated = apply_result({"Alice": 2, "Bob": 2}, "Bob", ["Alice"])
    assert updated == {"Bob": 3, "Alice": 2}
    assert list(updated) == ["Bob", "Alice"]
    print("    ✅ Bob moves to the top")


def test_apply_result_adds_newcomers_at_zero():
    print("🧪 Testing new participants...")
    table = {"Alice": 3, "Bob": 1, "Dana": 5}
    updated = apply_result(table, "Carol", ["Bob", "Eve"])
    assert updated["Carol"] == 1
    assert updated["Eve"] == 0
    assert updated["Bob"] == 1
    # Non-participants keep their scores
    assert updated["Alice"] == 3 and updated["Dana"] == 5
    assert list(updated) == ["Dana", "Alice", "Bob", "Carol", "Eve"]
    print("    ✅ Newcomers inserted, others preserved")


def test_apply_result_is_not_idempotent():
    table = {"Alice": 0, "Bob": 0}
    once = apply_result(table, "Alice", ["Bob"])
    twice = apply_result(once, "Alice", ["Bob"])
    assert twice["Alice"] == 2


def test_apply_result_rejects_bad_lineups():
    print("🧪 Testing line-up checks in the engine...")
    assert _raises_validation(apply_result, {}, "Alice", [])
    assert _raises_validation(apply_result, {}, "A", ["B", "C", "D", "E"])
    assert _raises_validation(apply_result, {}, "Alice", ["Alice"])
    assert _raises_validation(apply_result, {}, "Alice", ["Bob", "Bob"])
    print("    ✅ Too few, too many and repeated names rejected")


def test_sort_table_ties_are_alphabetical():
    rows = sort_table({"carol": 1, "Bob": 1, "alice": 1, "Zed": 4})
    assert rows == [("Zed", 4), ("alice", 1), ("Bob", 1), ("carol", 1)]
    scores = [s for _, s in rows]
    assert scores == sorted(scores, reverse=True)


def test_group_codes():
    print("🧪 Testing group code rules...")
    assert valid_group_code("ABCDE")
    assert valid_group_code("a1b2c")
    assert not valid_group_code("ABCD")
    assert not valid_group_code("ABCDEF")
    assert not valid_group_code("AB-DE")
    assert not valid_group_code("ABCDE\n")
    assert not valid_group_code(12345)
    assert normalize_group_code("abcde") == "ABCDE"
    assert _raises_validation(normalize_group_code, None)
    assert _raises_validation(normalize_group_code, "  ")
    assert _raises_validation(normalize_group_code, "ÀBCDE")
    print("    ✅ Codes validated and uppercased")


def test_match_players():
    print("🧪 Testing match line-up rules...")
    assert match_players([" Alice", "Bob "]) == ["Alice", "Bob"]
    assert match_players(["A", "B", "C", "D"]) == ["A", "B", "C", "D"]
    assert _raises_validation(match_players, ["Alice"])
    assert _raises_validation(match_players, ["A", "B", "C", "D", "E"])
    assert _raises_validation(match_players, ["Alice", "Alice"])
    assert _raises_validation(match_players, ["Alice", " Alice "])
    assert _raises_validation(match_players, ["Alice", "   "])
    assert _raises_validation(match_players, ["Alice", 7])
    assert _raises_validation(match_players, "Alice,Bob")
    print("    ✅ Count, blanks and duplicates checked")


def test_group_players():
    assert group_players(["Alice", "Bob", "Carol", "Dana", "Eve"]) == ["Alice", "Bob", "Carol", "Dana", "Eve"]
    assert _raises_validation(group_players, ["Alice"])
    assert _raises_validation(group_players, None)
    assert _raises_validation(group_players, ["Alice", "Alice"])


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_") and callable(v)]
    failed = 0
    for t in tests:
        try:
            t()
        except AssertionError as e:
            failed += 1
            print(f"❌ {t.__name__} failed: {e}")
    print(f"\n{len(tests) - failed}/{len(tests)} tests passed")
    sys.exit(1 if failed else 0)
