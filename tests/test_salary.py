import pytest

from jobcapture.models import SalaryPeriod
from jobcapture.salary import (
    SalaryInfo,
    detect_period,
    find_salary_in_description,
    find_salary_in_insights,
    parse_salary_text,
    salary_from_json_ld,
    strip_benefit_suffix,
)


def test_annual_range_with_k_on_both_sides():
    info = parse_salary_text("$55K/yr - $60K/yr")
    assert info.minimum == 55000
    assert info.maximum == 60000
    assert info.period is SalaryPeriod.ANNUAL


def test_decimal_k_multiplier_applies_per_side():
    info = parse_salary_text("$97.6k - 100k")
    assert info.minimum == 97600
    assert info.maximum == 100000


def test_only_one_side_carries_k():
    info = parse_salary_text("$90 - $120K")
    assert info.minimum == 90
    assert info.maximum == 120000


def test_reversed_range_is_normalized():
    info = parse_salary_text("$120K - $90K")
    assert info.minimum == 90000
    assert info.maximum == 120000


def test_hourly_range():
    info = parse_salary_text("$25/hr - $30/hr")
    assert (info.minimum, info.maximum) == (25, 30)
    assert info.period is SalaryPeriod.HOURLY


def test_hourly_marker_wins_over_annual():
    assert detect_period("$40/hr ($83,200 per year)") is SalaryPeriod.HOURLY


def test_single_amount_has_no_maximum():
    info = parse_salary_text("$85,000 a year")
    assert info.minimum == 85000
    assert info.maximum is None
    assert info.period is SalaryPeriod.ANNUAL


def test_en_dash_and_to_separators():
    assert parse_salary_text("£40,000 – £50,000").maximum == 50000
    assert parse_salary_text("€30 to €35 per hour").period is SalaryPeriod.HOURLY


def test_benefit_suffix_is_stripped():
    assert strip_benefit_suffix("$150K/yr - $190K/yr · Vision, +3 benefits") == "$150K/yr - $190K/yr"
    info = parse_salary_text("$25/hr · Medical, +1 benefit")
    assert info.raw == "$25/hr"
    assert info.minimum == 25


def test_text_without_amount_is_not_a_salary():
    assert parse_salary_text("Competitive pay") is None
    assert parse_salary_text("") is None


def test_insights_pick_first_currency_fragment():
    info = find_salary_in_insights(["Remote", "Full-time", "$70K/yr - $80K/yr", "$1 - $2"])
    assert (info.minimum, info.maximum) == (70000, 80000)


def test_insights_without_salary():
    assert find_salary_in_insights(["Remote", "Full-time"]) is None


def test_description_range_defaults_to_annual():
    info = find_salary_in_description("The base pay range is $50,000 - $70,000 depending on experience.")
    assert (info.minimum, info.maximum) == (50000, 70000)
    assert info.period is SalaryPeriod.ANNUAL
    assert info.raw == "$50,000 - $70,000"


def test_description_range_with_nearby_hourly_marker():
    info = find_salary_in_description("Pay: $40 - $55 per hour, paid weekly.")
    assert info.period is SalaryPeriod.HOURLY
    assert (info.minimum, info.maximum) == (40, 55)


def test_description_single_amount_with_unit():
    info = find_salary_in_description("Compensation starts at $85,000 per year plus equity.")
    assert info.minimum == 85000
    assert info.maximum is None
    assert info.period is SalaryPeriod.ANNUAL


def test_k_must_stand_alone_to_multiply():
    info = find_salary_in_description("Pay: $45 - 55 Kansas City based role, hybrid.")
    assert (info.minimum, info.maximum) == (45, 55)

    info = parse_salary_text("$80 Kickoff bonus")
    assert info.minimum == 80


def test_description_without_salary():
    assert find_salary_in_description("We offer great culture and snacks.") is None
    assert find_salary_in_description(None) is None


def test_json_ld_base_salary():
    posting = {
        "baseSalary": {
            "@type": "MonetaryAmount",
            "currency": "USD",
            "value": {"@type": "QuantitativeValue", "minValue": 40, "maxValue": 35, "unitText": "HOUR"},
        }
    }
    info = salary_from_json_ld(posting)
    assert (info.minimum, info.maximum) == (35, 40)
    assert info.period is SalaryPeriod.HOURLY
    assert info.raw == "$35 - $40"


def test_json_ld_without_base_salary():
    assert salary_from_json_ld({"title": "Engineer"}) is None
    assert salary_from_json_ld(None) is None


@pytest.mark.parametrize("minimum,maximum", [(10.0, 5.0), (7.5, 7.5)])
def test_salary_info_never_reversed(minimum, maximum):
    info = SalaryInfo(raw="", minimum=minimum, maximum=maximum)
    assert info.minimum <= info.maximum
