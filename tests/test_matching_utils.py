import math
from datetime import date, datetime, time
from types import SimpleNamespace

from app_utils.event_time import event_start, event_status
from app_utils.geo import calculate_distance, coordinate_distance, parse_coordinate
from app_utils.text_match import (
    detect_categories,
    dump_assigned_departments,
    parse_assigned_departments,
    reasons_match,
    tokenize_for_match,
    tokens_similar,
)


def test_parse_coordinate():
    assert parse_coordinate("23.8103, 90.4125") == (23.8103, 90.4125)
    assert parse_coordinate("23.8103,90.4125,12") == (23.8103, 90.4125)
    assert parse_coordinate("") is None
    assert parse_coordinate(None) is None
    assert parse_coordinate("23.8") is None
    assert parse_coordinate("north,south") is None
    assert parse_coordinate("nan,90") is None


def test_calculate_distance():
    assert calculate_distance(23.8103, 90.4125, 23.8103, 90.4125) == 0
    # one degree of latitude is roughly 111 km
    assert 111000 < calculate_distance(0, 0, 1, 0) < 111400
    assert math.isinf(calculate_distance(None, 0, 1, 1))
    assert math.isinf(coordinate_distance(None, (1, 1)))


def test_nearby_points_are_within_radius():
    a = parse_coordinate("23.8103,90.4125")
    b = parse_coordinate("23.8106,90.4127")
    assert coordinate_distance(a, b) < 100


def test_tokenize_for_match():
    assert tokenize_for_match("Big FIRE, at the market!") == ["big", "fire", "the", "market"]
    assert tokenize_for_match(None) == []


def test_tokens_similar_uses_shorter_list():
    short = tokenize_for_match("fire market")
    long = tokenize_for_match("large fire near the old market")
    assert tokens_similar(short, long)
    assert not tokens_similar(tokenize_for_match("pothole road"), long)
    assert not tokens_similar([], long)


def test_reasons_match():
    assert reasons_match("same text", "same text")
    assert reasons_match("fire at the market", "fire visible at market stall")
    assert not reasons_match("broken water pipe", "fire at market")
    assert not reasons_match("", "fire")


def test_detect_categories():
    assert detect_categories("Smoke rising from building") == {"fire"}
    assert detect_categories("pothole on the road", "water leak") == {"road", "water"}
    assert detect_categories(None, "") == set()


def test_parse_assigned_departments():
    assert parse_assigned_departments('["fire","health"]') == ["fire", "health"]
    assert parse_assigned_departments('"fire"') == ["fire"]
    assert parse_assigned_departments("fire, water") == ["fire", "water"]
    assert parse_assigned_departments(["police"]) == ["police"]
    assert parse_assigned_departments(None) == []


def test_dump_assigned_departments():
    assert dump_assigned_departments(["fire", "health"]) == '["fire", "health"]'
    assert dump_assigned_departments([]) is None


def _event(d, t, minutes):
    return SimpleNamespace(date=d, time=t, duration_minutes=minutes)


def test_event_status_boundaries():
    event = _event(date(2026, 5, 1), time(10, 0), 60)
    assert event_start(event) == datetime(2026, 5, 1, 10, 0)
    assert event_status(event, now=datetime(2026, 5, 1, 9, 59)) == "upcoming"
    assert event_status(event, now=datetime(2026, 5, 1, 10, 0)) == "ongoing"
    assert event_status(event, now=datetime(2026, 5, 1, 11, 0)) == "ongoing"
    assert event_status(event, now=datetime(2026, 5, 1, 11, 1)) == "past"


def test_event_without_date_is_upcoming():
    assert event_status(_event(None, None, 30)) == "upcoming"
