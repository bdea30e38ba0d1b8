"""Tests for the stage handlers and the matching rules at both pools."""

from __future__ import annotations

import pytest

from counter_sim.errors import InvariantViolation
from counter_sim.simulation import build_model, run_replication
from counter_sim.config import apply_overrides
from counter_sim.stations import FRONT_LINE, PREPARATION

from .conftest import ConstantVariates, HAND_DELAYS


def _pending_for(env, customer):
    hits = []
    for ev in env.FEL:
        data = ev.data
        if data.get("customer") is customer:
            hits.append(ev)
        order = data.get("order")
        if order is not None and order.customer is customer:
            hits.append(ev)
    return hits


class TestHandScenario:
    """1 server, 1 cook, arrivals every 10 min, 5/8/2 min service."""

    def test_three_customers_with_growing_front_line_waits(self, single_server_cfg, hand_variates):
        env, router = build_model(single_server_cfg, hand_variates)
        env.run_until(45.0)
        M = router.M
        assert M.hist.n == 3
        assert [lc[:4] for lc in M.lifecycles] == [
            (1, 0.0, 0.0, 15.0),
            (2, 10.0, 15.0, 30.0),
            (3, 20.0, 30.0, 45.0),
        ]
        # 0, 5 and 10 minutes in line on top of the 15-minute service chain
        assert [lc[4] for lc in M.lifecycles] == [0.0, 5.0, 10.0]
        assert M.hist.total == pytest.approx(15.0 + 20.0 + 25.0)

    def test_event_trace(self, single_server_cfg, hand_variates):
        env, _ = build_model(single_server_cfg, hand_variates)
        env.run_until(15.0)
        assert env.history == [
            (0.0, "generate"), (0.0, "arrival"), (5.0, "order_placed"),
            (10.0, "generate"), (10.0, "arrival"), (13.0, "order_ready"),
            (15.0, "settlement"),
        ]

    def test_queued_customer_has_no_pending_event(self, single_server_cfg, hand_variates):
        env, router = build_model(single_server_cfg, hand_variates)
        env.run_until(10.0)
        st = router.state
        assert len(st.customers) == 1
        waiting = next(iter(st.customers))
        assert waiting.cid == 2 and waiting.t_assigned is None
        assert _pending_for(env, waiting) == []
        # released at 15 by customer 1's settlement, then an order is pending
        env.run_until(15.0)
        assert len(st.customers) == 0
        assert waiting.t_assigned == 15.0
        assert [ev.kind for ev in _pending_for(env, waiting)] == ["order_placed"]

    def test_idle_servers_return_to_pool(self, single_server_cfg, hand_variates):
        cfg = apply_overrides(single_server_cfg, {"capacities": {"front_line": 3, "preparation": 2}})
        env, router = build_model(cfg, hand_variates)
        env.run_until(19.0)
        st = router.state
        # customer 1 left at 15; customer 2 (arrived at 10) is being cooked for
        assert st.front.busy_count == 1 and st.front.idle_count == 2
        assert st.prep.busy_count == 1 and st.prep.idle_count == 1
        st.check()


class TestOrderLine:

    def test_orders_wait_for_the_only_cook(self, cfg):
        rv = ConstantVariates(dict(HAND_DELAYS, inter_arrival=1.0, preparation_service=10.0))
        cfg = apply_overrides(cfg, {"capacities": {"front_line": 3, "preparation": 1}})
        env, router = build_model(cfg, rv)
        env.run_until(7.0)
        st = router.state
        # orders placed at 5, 6, 7; the first is cooking, two wait
        assert st.prep.busy_count == 1
        assert len(st.orders) == 2
        env.run_until(15.0)
        # first order ready at 15 -> cook moves straight to the next order
        assert st.prep.busy_count == 1 and len(st.orders) == 1
        assert router.M.lifecycles == []
        env.run_until(17.0)
        assert router.M.lifecycles[0][:4] == (1, 0.0, 0.0, 17.0)


class TestInvariants:

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_pool_partition_holds_after_every_event(self, cfg, seed):
        cfg = apply_overrides(cfg, {"sim": {"seed": seed}, "capacities": {"front_line": 2, "preparation": 1}})
        env, router = build_model(cfg)
        st = router.state
        while env.peek() is not None and env.peek().t <= 600.0:
            env.step()
            st.check()
            assert st.front.idle_count + st.front.busy_count == 2
            assert st.prep.idle_count + st.prep.busy_count == 1
        assert router.M.hist.n > 0

    @pytest.mark.parametrize("seed", [3, 11])
    def test_front_line_is_first_come_first_served(self, cfg, seed):
        cfg = apply_overrides(cfg, {"sim": {"seed": seed}})
        env, router = build_model(cfg)
        env.run_until(1500.0)
        lifecycles = sorted(router.M.lifecycles)
        assigned = [lc[2] for lc in lifecycles]
        assert assigned == sorted(assigned)
        for cid, start, t_assigned, end, queued in lifecycles:
            assert start <= t_assigned <= end
            assert end - start >= queued >= 0.0

    def test_wait_is_queue_time_plus_service_chain(self, cfg):
        rv = ConstantVariates(dict(HAND_DELAYS, inter_arrival=4.0))
        cfg = apply_overrides(cfg, {"capacities": {"front_line": 2, "preparation": 1}})
        env, router = build_model(cfg, rv)
        env.run_until(300.0)
        assert len(router.M.lifecycles) > 10
        for _, start, _, end, queued in router.M.lifecycles:
            assert end - start == pytest.approx(queued + 5.0 + 8.0 + 2.0)

    def test_settling_twice_is_fatal(self, single_server_cfg, hand_variates):
        env, router = build_model(single_server_cfg, hand_variates)
        captured = []
        original = router.on_settlement

        def spy(env, server, order):
            captured.append((server, order))
            return original(env, server, order)

        router.on_settlement = spy
        env.run_until(13.0)
        env.run_until(15.0)
        assert captured
        server, order = captured[0]
        with pytest.raises(InvariantViolation):
            original(env, server, order)

    def test_ready_from_wrong_cook_is_fatal(self, single_server_cfg, hand_variates):
        env, router = build_model(single_server_cfg, hand_variates)
        env.run_until(6.0)
        ev = next(e for e in env.FEL if e.kind == "order_ready")
        router.state.prep.release(env.t, ev.data["chef"])
        with pytest.raises(InvariantViolation):
            env.run_until(13.0)


def test_run_replication_reports_pools_and_queues(cfg):
    res = run_replication(apply_overrides(cfg, {"sim": {"seed": 5}}))
    assert set(res["pool_utilization"]) == {FRONT_LINE, PREPARATION}
    assert set(res["max_queue_length"]) == {"customers", "orders"}
    assert 0.0 <= res["pool_utilization"][PREPARATION] <= 1.0
    assert res["arrivals"] >= res["served"] > 0
    assert res["events_dispatched"] > res["arrivals"]


def test_summary_counts_assignments(single_server_cfg, hand_variates):
    res = run_replication(single_server_cfg, hand_variates)
    # customers 1-4 were attended (4 taken at 45); orders of 1-3 were cooked
    assert res["pool_assignments"] == {FRONT_LINE: 4, PREPARATION: 3}
    assert res["queue_entries"] == {"customers": 4, "orders": 0}
    assert res["served"] == 3
