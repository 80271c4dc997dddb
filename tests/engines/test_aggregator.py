"""
Tests for the bulk aggregator and the full calculation pipeline.
"""

from datetime import date
from decimal import Decimal

import pytest

from billing_engines.aggregator import aggregate, compute_net_pay
from billing_engines.pipeline import compute_bulk
from billing_kernel.domain.timesheet import NetPayPolicy, RateConfiguration
from billing_kernel.exceptions import (
    DuplicateWorkerError,
    EmptyRecordError,
    InvalidWeekError,
    RateConfigurationError,
)
from builders import WEEK_END, WEEK_START, make_worker

PAY_20_BILL_25 = RateConfiguration(
    regular_pay_rate=Decimal("20"),
    regular_bill_rate=Decimal("25"),
    overtime_enabled=False,
)

PAY_20_30_BILL_25_35 = RateConfiguration(
    regular_pay_rate=Decimal("20"),
    regular_bill_rate=Decimal("25"),
    overtime_pay_rate=Decimal("30"),
    overtime_bill_rate=Decimal("35"),
    overtime_enabled=True,
)


def _two_workers():
    return [
        make_worker("w-1", hours_per_day=8, rates=PAY_20_BILL_25),
        make_worker("w-2", hours_per_day=7, overtime_per_day=1, rates=PAY_20_30_BILL_25_35),
    ]


class TestTwoWorkerWeek:
    def test_totals(self):
        computed = compute_bulk(WEEK_START, WEEK_END, _two_workers())
        totals = computed.totals

        assert totals.total_jobseeker_pay == Decimal("1650.00")
        assert totals.total_client_bill == Decimal("2050.00")
        assert totals.total_regular_hours == Decimal("75.00")
        assert totals.total_overtime_hours == Decimal("5.00")
        assert totals.total_hours == Decimal("80.00")
        assert totals.total_overtime_pay == Decimal("150.00")
        assert totals.number_of_jobseekers == 2
        assert totals.average_hours_per_jobseeker == Decimal("40.00")
        assert totals.average_pay_per_jobseeker == Decimal("825.00")

    def test_jobseeker_pay_is_the_sum_of_worker_pay(self):
        computed = compute_bulk(WEEK_START, WEEK_END, _two_workers())

        assert computed.totals.total_jobseeker_pay == sum(w.worker_pay for w in computed.workers)
        assert computed.totals.number_of_jobseekers == len(computed.workers)

    def test_week_period_label(self):
        computed = compute_bulk(WEEK_START, WEEK_END, _two_workers())

        assert computed.week_period == "Apr 7, 2024 - Apr 13, 2024"


class TestNetPay:
    def test_default_policy_is_jobseeker_pay(self):
        computed = compute_bulk(WEEK_START, WEEK_END, _two_workers())

        assert computed.totals.net_pay == Decimal("1650.00")

    def test_margin_policy(self):
        computed = compute_bulk(
            WEEK_START, WEEK_END, _two_workers(), net_pay_policy=NetPayPolicy.MARGIN
        )

        assert computed.totals.net_pay == Decimal("400.00")

    def test_compute_net_pay(self):
        assert compute_net_pay(Decimal("10"), Decimal("15"), NetPayPolicy.MARGIN) == Decimal("5.00")
        assert compute_net_pay(Decimal("10"), Decimal("15"), NetPayPolicy.JOBSEEKER_PAY) == Decimal("10")


class TestAverages:
    def test_averages_round_half_up(self):
        workers = [
            make_worker("w-1", hours_per_day=1, days=[date(2024, 4, 8)], rates=PAY_20_BILL_25),
            make_worker("w-2", hours_per_day=1, days=[date(2024, 4, 8)], rates=PAY_20_BILL_25),
            make_worker("w-3", hours_per_day=0, days=[date(2024, 4, 8)], rates=PAY_20_BILL_25),
        ]

        totals = compute_bulk(WEEK_START, WEEK_END, workers).totals

        # 2 / 3 hours, 40 / 3 pay
        assert totals.average_hours_per_jobseeker == Decimal("0.67")
        assert totals.average_pay_per_jobseeker == Decimal("13.33")


class TestRejections:
    def test_empty_worker_list(self):
        with pytest.raises(EmptyRecordError):
            compute_bulk(WEEK_START, WEEK_END, [])

    def test_aggregate_refuses_empty_list(self):
        with pytest.raises(EmptyRecordError):
            aggregate([])

    def test_empty_list_is_checked_before_the_week(self):
        with pytest.raises(EmptyRecordError):
            compute_bulk(WEEK_END, WEEK_START, [])

    def test_inverted_week(self):
        with pytest.raises(InvalidWeekError):
            compute_bulk(WEEK_END, WEEK_START, _two_workers())

    def test_week_longer_than_seven_days(self):
        with pytest.raises(InvalidWeekError):
            compute_bulk(WEEK_START, date(2024, 4, 14), _two_workers())

    def test_duplicate_worker(self):
        with pytest.raises(DuplicateWorkerError):
            compute_bulk(
                WEEK_START,
                WEEK_END,
                [make_worker("w-1"), make_worker("w-1")],
            )

    def test_one_bad_worker_rejects_the_whole_record(self):
        broken = RateConfiguration(regular_pay_rate=None, regular_bill_rate=Decimal("25"))

        with pytest.raises(RateConfigurationError):
            compute_bulk(
                WEEK_START,
                WEEK_END,
                [make_worker("w-1"), make_worker("w-2", rates=broken)],
            )


class TestRecomputation:
    def test_precomputed_workers_are_kept_as_is(self):
        first = compute_bulk(WEEK_START, WEEK_END, _two_workers())

        again = compute_bulk(WEEK_START, WEEK_END, list(first.workers))

        assert again == first
