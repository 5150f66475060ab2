from strategy_lab.analysis.coverage import analyze_coverage, scan_action_references

SOURCE = """\
def strategy(ctx):
    if ctx.index == 0:
        return {"action": "buy"}
    if ctx.index == 99:
        return {"action": "sell", "note": "go short"}
    if ctx.index == 3:
        return {"action": "exit"}
    return "hold"
"""


def test_scan_maps_keywords_to_lines():
    refs = scan_action_references(SOURCE)
    assert refs == {"buy": [3], "sell": [5], "short": [5], "exit": [7]}


def test_scan_uses_whole_words():
    refs = scan_action_references("buyer = 1\nexits = 2\nshorter = 3\n")
    assert refs == {}


def test_unexercised_actions_are_reported():
    coverage = analyze_coverage(SOURCE, {"buy", "exit"})
    assert coverage.uncovered == {"sell": [5], "short": [5]}
    assert coverage.coverage_pct == 50.0


def test_short_is_covered_by_sell():
    coverage = analyze_coverage(SOURCE, {"buy", "sell", "exit"})
    assert coverage.uncovered == {}
    assert coverage.coverage_pct == 100.0


def test_no_source_has_nothing_to_cover():
    coverage = analyze_coverage(None, {"buy"})
    assert coverage.references == {}
    assert coverage.exercised == {"buy"}
    assert coverage.coverage_pct == 100.0
