from momentum_engine.features.momentum.milestones import MILESTONES, detect


def test_crossing_single_milestone():
    assert detect(24, 26) == 25


def test_landing_exactly_on_milestone():
    assert detect(20, 25) == 25
    assert detect(90, 100) == 100


def test_starting_on_milestone_does_not_report():
    assert detect(25, 25) is None
    assert detect(25, 30) is None


def test_decrease_never_reports():
    assert detect(60, 20) is None


def test_multiple_crossed_defaults_to_lowest():
    assert detect(35, 55) == 40


def test_multiple_crossed_highest_policy():
    assert detect(35, 55, policy="highest") == 50


def test_milestone_set():
    assert MILESTONES == (25, 40, 50, 75, 100)
