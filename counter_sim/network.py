# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# network.py
# -----------------------------------------------------------------------------
# Purpose:
#   Network state and the four stage handlers. Decides which server a
#   customer or order gets, what is scheduled next, and who inherits a
#   server when a stage completes.
#
# Design notes:
#   - Matching is the same at both pools: take an idle server or join the
#     FIFO line; on release, the head of the line inherits the server, else
#     the server goes idle.
#   - Immediate and deferred matches both go through _attend / _prepare, so
#     the downstream schedule does not depend on which path was taken.
#   - Handlers return Followup lists; Env schedules them in order.
#
# Usage:
#   router = Router(cfg, make_state(cfg), variates, metrics, tracer)
#   schedule_arrivals(env, router)
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from .entities import Customer, Order, Server
from .errors import InvariantViolation
from .queues import Followup, WaitQueue
from .stations import FRONT_LINE, PREPARATION, ResourcePool, make_pools

CUSTOMER_QUEUE = "customers"
ORDER_QUEUE = "orders"

@dataclass
class NetworkState:
    front: ResourcePool              # front-line servers: attend and settle
    prep: ResourcePool               # preparation servers: cook
    customers: WaitQueue             # customers waiting for a front-line server
    orders: WaitQueue                # placed orders waiting for a preparation server

    def pools(self) -> Dict[str, ResourcePool]:
        return {FRONT_LINE: self.front, PREPARATION: self.prep}

    def queues(self) -> Dict[str, WaitQueue]:
        return {CUSTOMER_QUEUE: self.customers, ORDER_QUEUE: self.orders}

    def check(self):
        """Raise InvariantViolation unless both pools partition cleanly and
        nobody waits while a server of the same kind sits idle."""
        self.front.check()
        self.prep.check()
        if self.customers and self.front.idle:
            raise InvariantViolation("customers waiting while a front-line server is idle")
        if self.orders and self.prep.idle:
            raise InvariantViolation("orders waiting while a preparation server is idle")

def make_state(cfg: dict) -> NetworkState:
    pools = make_pools(cfg)
    return NetworkState(
        front=pools[FRONT_LINE],
        prep=pools[PREPARATION],
        customers=WaitQueue(CUSTOMER_QUEUE),
        orders=WaitQueue(ORDER_QUEUE),
    )

class Router:
    def __init__(self, cfg: dict, state: NetworkState, variates, metrics, tracer):
        self.cfg = cfg
        self.state = state
        self.rv = variates
        self.M = metrics
        self.trace = tracer
        self._next_cid = 1
        self._next_oid = 1
        self.M.attach(state.pools(), state.queues())

    def new_customer(self) -> Customer:
        cust = Customer(self._next_cid)
        self._next_cid += 1
        return cust

    # Stage 1: a customer walks in
    def on_arrival(self, env, customer: Customer) -> List[Followup]:
        if customer.wait_start is not None:
            raise InvariantViolation(f"{customer} arrived twice")
        customer.wait_start = env.t
        self.M.note_arrival(customer, env.t)
        st = self.state
        self.trace.note(env.t, "%s arrives. Customers queue: %d.", customer, len(st.customers))
        server = st.front.acquire(env.t, customer)
        if server is None:
            st.customers.push(env.t, customer)
            self.trace.note(env.t, "%s waits. Customers queue: %d.", customer, len(st.customers))
            return []
        return self._attend(env, server, customer)

    # Stage 2: the order has been taken and goes to the kitchen
    def on_order_placed(self, env, order: Order) -> List[Followup]:
        self._require_live(order)
        self._require_holder(self.state.front, order.server, order.customer)
        order.t_placed = env.t
        self.M.note_order_placed(order, env.t)
        st = self.state
        self.trace.note(env.t, "%s places %s. Pending orders: %d.", order.customer, order, len(st.orders))
        chef = st.prep.acquire(env.t, order)
        if chef is None:
            st.orders.push(env.t, order)
            return []
        return self._prepare(env, chef, order)

    # Stage 3: the kitchen is done; settlement starts, the chef moves on
    def on_order_ready(self, env, chef: Server, order: Order) -> List[Followup]:
        self._require_live(order)
        self._require_holder(self.state.prep, chef, order)
        order.t_ready = env.t
        self.M.note_order_ready(order, env.t)
        self.trace.note(env.t, "%s is ready; %s serves %s and waits for payment.",
                        order, order.server, order.customer)
        out = [Followup(self.rv.sample("settlement_service"), "settlement",
                        self.on_settlement, {"server": order.server, "order": order})]
        st = self.state
        if st.orders:
            nxt, waited = st.orders.pop(env.t)
            self.M.note_queue_exit(st.orders.name, waited)
            st.prep.rebind(env.t, chef, nxt)
            out += self._prepare(env, chef, nxt)
        else:
            st.prep.release(env.t, chef)
            self.trace.debug(env.t, "No orders. Available chefs: %d.", st.prep.idle_count)
        return out

    # Stage 4: the customer pays and leaves; the front-line server moves on
    def on_settlement(self, env, server: Server, order: Order) -> List[Followup]:
        self._require_live(order)
        cust = order.customer
        self._require_holder(self.state.front, server, cust)
        cust.wait_end = env.t
        order.settled = True
        self.M.note_settled(cust, order)
        self.trace.note(env.t, "%s pays to %s and leaves after %.3f min.", cust, server, cust.wait_time)
        st = self.state
        if st.customers:
            nxt, waited = st.customers.pop(env.t)
            self.M.note_queue_exit(st.customers.name, waited)
            st.front.rebind(env.t, server, nxt)
            return self._attend(env, server, nxt)
        st.front.release(env.t, server)
        self.trace.debug(env.t, "No customers. Available servers: %d.", st.front.idle_count)
        return []

    def _attend(self, env, server: Server, customer: Customer) -> List[Followup]:
        """Bind customer to server and schedule the order being placed."""
        customer.t_assigned = env.t
        order = Order(self._next_oid, server, customer)
        self._next_oid += 1
        self.trace.note(env.t, "%s is being attended by %s.", customer, server)
        self.trace.debug(env.t, "Customers queue: %d. Available servers: %d.",
                         len(self.state.customers), self.state.front.idle_count)
        return [Followup(self.rv.sample("assignment_service"), "order_placed",
                         self.on_order_placed, {"order": order})]

    def _prepare(self, env, chef: Server, order: Order) -> List[Followup]:
        """Bind order to chef and schedule it becoming ready."""
        order.chef = chef
        self.trace.note(env.t, "%s is being prepared by %s.", order, chef)
        self.trace.debug(env.t, "Pending orders: %d. Available chefs: %d.",
                         len(self.state.orders), self.state.prep.idle_count)
        return [Followup(self.rv.sample("preparation_service"), "order_ready",
                         self.on_order_ready, {"chef": chef, "order": order})]

    @staticmethod
    def _require_live(order: Order):
        if order.settled:
            raise InvariantViolation(f"{order} was already settled")

    @staticmethod
    def _require_holder(pool: ResourcePool, server: Server, requester):
        if pool.holder(server) is not requester:
            raise InvariantViolation(f"{server} is not serving {requester}")
