"""
Property tests for the calculation pipeline (Hypothesis).

- Re-running the pipeline on the same inputs gives identical results.
- Record totals always equal the sum of the per-worker figures.
- Hours are never lost: billed hours equal entered hours.
"""

from datetime import timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from billing_engines.pipeline import compute_bulk
from billing_kernel.domain.timesheet import (
    RateConfiguration,
    WorkerRef,
    WorkerTimesheetInput,
)
from builders import WEEK_END, WEEK_START

hours = st.decimals(min_value=Decimal("0"), max_value=Decimal("12"), places=2)
rates = st.decimals(min_value=Decimal("0"), max_value=Decimal("150"), places=3)
money = st.decimals(min_value=Decimal("0"), max_value=Decimal("500"), places=2)


@st.composite
def worker_inputs(draw, worker_id: str):
    day_offsets = draw(st.sets(st.integers(min_value=0, max_value=6), max_size=7))
    entries = tuple(
        (WEEK_START + timedelta(days=offset), draw(hours), draw(hours))
        for offset in sorted(day_offsets)
    )
    threshold = draw(
        st.one_of(
            st.none(),
            st.decimals(min_value=Decimal("0"), max_value=Decimal("60"), places=2),
        )
    )
    return WorkerTimesheetInput(
        worker=WorkerRef(worker_id=worker_id),
        entries=entries,
        rates=RateConfiguration(
            regular_pay_rate=draw(rates),
            regular_bill_rate=draw(rates),
            overtime_pay_rate=draw(rates),
            overtime_bill_rate=draw(rates),
            overtime_enabled=draw(st.booleans()),
            overtime_threshold_hours=threshold,
        ),
        bonus_amount=draw(money),
        deduction_amount=draw(money),
    )


@st.composite
def worker_lists(draw):
    count = draw(st.integers(min_value=1, max_value=6))
    return [draw(worker_inputs(f"w-{i}")) for i in range(count)]


class TestPipelineProperties:
    @settings(max_examples=75, deadline=None)
    @given(workers=worker_lists())
    def test_recomputation_is_identical(self, workers):
        first = compute_bulk(WEEK_START, WEEK_END, workers)
        second = compute_bulk(WEEK_START, WEEK_END, workers)

        assert first == second

    @settings(max_examples=75, deadline=None)
    @given(workers=worker_lists())
    def test_totals_are_sums_of_workers(self, workers):
        computed = compute_bulk(WEEK_START, WEEK_END, workers)
        totals = computed.totals

        assert totals.number_of_jobseekers == len(workers)
        assert totals.total_jobseeker_pay == sum(w.worker_pay for w in computed.workers)
        assert totals.total_client_bill == sum(w.client_bill for w in computed.workers)
        assert totals.total_bonus == sum(w.bonus_amount for w in computed.workers)
        assert totals.total_hours == totals.total_regular_hours + totals.total_overtime_hours

    @settings(max_examples=75, deadline=None)
    @given(workers=worker_lists())
    def test_no_hours_are_dropped(self, workers):
        computed = compute_bulk(WEEK_START, WEEK_END, workers)

        for worker in computed.workers:
            entered = worker.entered_regular_hours + worker.entered_overtime_hours
            assert worker.total_hours == entered

    @settings(max_examples=50, deadline=None)
    @given(workers=worker_lists())
    def test_recomputing_stored_results_changes_nothing(self, workers):
        computed = compute_bulk(WEEK_START, WEEK_END, workers)

        recomputed = compute_bulk(
            WEEK_START, WEEK_END, [w.as_input() for w in computed.workers]
        )

        assert recomputed == computed
