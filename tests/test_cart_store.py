"""Tests for the cart state store."""

import asyncio

import httpx

from storefront.core.state import CartAction
from storefront.exceptions import (
    InventoryError,
    NetworkFailure,
    SupersededRequest,
    ValidationError,
)
from storefront.services.cart_store import CartStore
from helpers import FakeApi, cart_data, delayed, fail, held, ok

TEE = ("var-tee", 150000)


def _cart(quantity: int, inventory: int = 5) -> dict:
    return cart_data((*TEE, quantity, inventory))


def _store(api: FakeApi, delay: float = 0.01) -> CartStore:
    return CartStore(api.client(), debounce_delay=delay)


def test_fetch_commits_snapshot_and_notifies():
    api = FakeApi().on("GET", "/cart", ok(_cart(2)))
    seen = []

    async def scenario():
        store = _store(api)

        async def listener(cart, action):
            seen.append((cart.subtotal, action))

        store.add_listener(listener)
        result = await store.fetch()
        return store, result

    store, result = asyncio.run(scenario())

    assert result.success
    assert store.subtotal == 300000
    assert store.item_count == 2
    assert not store.loading
    assert seen == [(300000, CartAction.FETCH)]


def test_newer_fetch_supersedes_older_one():
    api = FakeApi().on(
        "GET",
        "/cart",
        delayed(0.05, ok(_cart(1))),
        ok(_cart(3)),
    )

    async def scenario():
        store = _store(api)
        first = asyncio.ensure_future(store.fetch())
        await asyncio.sleep(0.01)
        second = await store.fetch()
        return store, await first, second

    store, first, second = asyncio.run(scenario())

    assert isinstance(first.error, SupersededRequest)
    assert second.success
    assert store.cart.find_line("var-tee").quantity == 3


def test_add_item_rejects_non_positive_quantity_locally():
    api = FakeApi()

    async def scenario():
        return await _store(api).add_item("var-tee", 0)

    result = asyncio.run(scenario())

    assert isinstance(result.error, ValidationError)
    assert api.requests == []


def test_add_item_replaces_snapshot_with_server_answer():
    api = FakeApi().on("POST", "/cart/items", ok(_cart(1)))

    async def scenario():
        store = _store(api)
        result = await store.add_item("var-tee", 1)
        return store, result

    store, result = asyncio.run(scenario())

    assert result.success
    assert store.cart.lines[0].variant_id == "var-tee"
    assert api.bodies("POST", "/cart/items") == [{"productVariantId": "var-tee", "quantity": 1}]


def test_update_clamps_quantity_to_inventory_before_sending():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(_cart(1, inventory=4)))
        .on("PUT", "/cart/items/var-tee", ok(_cart(4, inventory=4)))
    )

    async def scenario():
        store = _store(api)
        await store.fetch()
        return await store.update_item("var-tee", 99)

    result = asyncio.run(scenario())

    assert result.success
    assert api.bodies("PUT", "/cart/items/var-tee") == [{"quantity": 4}]


def test_aggregates_are_not_touched_while_update_is_in_flight():
    api = FakeApi().on("GET", "/cart", ok(_cart(1)))

    async def scenario():
        gate = asyncio.Event()
        api.on("PUT", "/cart/items/var-tee", held(gate, ok(_cart(2))))
        store = _store(api)
        await store.fetch()

        pending = asyncio.ensure_future(store.update_item("var-tee", 2))
        await asyncio.sleep(0.01)
        during = (store.updating, store.is_busy, store.subtotal, store.display_quantity("var-tee"))
        gate.set()
        await pending
        after = (store.updating, store.is_busy, store.subtotal, store.display_quantity("var-tee"))
        return during, after

    during, after = asyncio.run(scenario())

    assert during == ({"var-tee"}, True, 150000, 2)
    assert after == (set(), False, 300000, 2)


def test_inventory_rejection_keeps_prior_snapshot_and_flags_line():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(_cart(2)))
        .on("PUT", "/cart/items/var-tee", fail(400, "Only 2 items available"))
    )

    async def scenario():
        store = _store(api)
        await store.fetch()
        result = await store.update_item("var-tee", 3)
        return store, result

    store, result = asyncio.run(scenario())

    assert isinstance(result.error, InventoryError)
    assert store.cart.find_line("var-tee").quantity == 2
    assert store.display_quantity("var-tee") == 2
    assert store.line_errors == {"var-tee": "Only 2 items available"}


def test_network_failure_reverts_tentative_quantity():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(_cart(2)))
        .on("PUT", "/cart/items/var-tee", httpx.ConnectError("offline"))
    )

    async def scenario():
        store = _store(api)
        await store.fetch()
        result = await store.update_item("var-tee", 4)
        return store, result

    store, result = asyncio.run(scenario())

    assert isinstance(result.error, NetworkFailure)
    assert result.error.retryable
    assert store.display_quantity("var-tee") == 2
    assert store.subtotal == 300000
    assert store.line_errors == {}


def test_late_response_cannot_overwrite_newer_one():
    api = FakeApi().on("GET", "/cart", ok(_cart(1)))
    api.on(
        "PUT",
        "/cart/items/var-tee",
        delayed(0.05, ok(_cart(2))),
        ok(_cart(3)),
    )

    async def scenario():
        store = _store(api)
        await store.fetch()
        slow = asyncio.ensure_future(store.update_item("var-tee", 2))
        await asyncio.sleep(0.01)
        fast = await store.update_item("var-tee", 3)
        return store, await slow, fast

    store, slow, fast = asyncio.run(scenario())

    assert fast.success
    assert isinstance(slow.error, SupersededRequest)
    assert store.cart.find_line("var-tee").quantity == 3


def test_typed_quantity_is_debounced_to_the_last_value():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(_cart(1, inventory=10)))
        .on("PUT", "/cart/items/var-tee", ok(_cart(7, inventory=10)))
    )

    async def scenario():
        store = _store(api, delay=0.02)
        await store.fetch()
        store.enter_quantity("var-tee", "5")
        store.enter_quantity("var-tee", "6")
        task = store.enter_quantity("var-tee", " 7 ")
        shown = store.display_quantity("var-tee")
        await task
        return store, shown

    store, shown = asyncio.run(scenario())

    assert shown == 7
    assert api.bodies("PUT", "/cart/items/var-tee") == [{"quantity": 7}]
    assert store.display_quantity("var-tee") == 7


def test_typed_garbage_is_rejected_without_a_request():
    api = FakeApi().on("GET", "/cart", ok(_cart(2)))

    async def scenario():
        store = _store(api)
        await store.fetch()
        task = store.enter_quantity("var-tee", "two")
        return store, task

    store, task = asyncio.run(scenario())

    assert task is None
    assert "var-tee" in store.line_errors
    assert store.display_quantity("var-tee") == 2
    assert api.calls("PUT", "/cart/items/var-tee") == []


def test_increment_and_decrement_respect_bounds():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(_cart(1, inventory=2)))
        .on("PUT", "/cart/items/var-tee", ok(_cart(2, inventory=2)))
    )

    async def scenario():
        store = _store(api)
        await store.fetch()
        below = await store.decrement("var-tee")
        up = await store.increment("var-tee")
        above = await store.increment("var-tee")
        return below, up, above

    below, up, above = asyncio.run(scenario())

    assert isinstance(below.error, ValidationError)
    assert up.success
    assert isinstance(above.error, ValidationError)
    assert api.bodies("PUT", "/cart/items/var-tee") == [{"quantity": 2}]


def test_remove_and_clear():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(cart_data((*TEE, 1, 5), ("var-cap", 120000, 1, 2))))
        .on("DELETE", "/cart/items/var-cap", ok(_cart(1)))
        .on("DELETE", "/cart", ok(cart_data()))
    )
    actions = []

    async def scenario():
        store = _store(api)

        async def listener(cart, action):
            actions.append(action)

        store.add_listener(listener)
        await store.fetch()
        await store.remove_item("var-cap")
        removed = store.cart.find_line("var-cap")
        await store.clear()
        return store, removed

    store, removed = asyncio.run(scenario())

    assert removed is None
    assert store.cart.is_empty
    assert store.subtotal == 0
    assert actions == [CartAction.FETCH, CartAction.REMOVE, CartAction.CLEAR]


def test_reset_empties_cart_without_a_request():
    api = FakeApi().on("GET", "/cart", ok(_cart(2)))
    actions = []

    async def scenario():
        store = _store(api)

        async def listener(cart, action):
            actions.append(action)

        store.add_listener(listener)
        await store.fetch()
        await store.reset()
        return store

    store = asyncio.run(scenario())

    assert store.cart.is_empty
    assert actions == [CartAction.FETCH, CartAction.CLEAR]
    assert len(api.requests) == 1


def test_recent_fetch_reuses_the_snapshot():
    api = FakeApi().on("GET", "/cart", ok(_cart(2)), ok(_cart(3)))

    async def scenario():
        store = CartStore(api.client(), debounce_delay=0.01, refetch_interval=60)
        await store.fetch()
        again = await store.fetch()
        forced = await store.fetch(force=True)
        return again, forced

    again, forced = asyncio.run(scenario())

    assert again.success
    assert again.data.find_line("var-tee").quantity == 2
    assert forced.data.find_line("var-tee").quantity == 3
    assert len(api.calls("GET", "/cart")) == 2


def test_failed_fetch_is_retried_once():
    api = FakeApi().on("GET", "/cart", httpx.ConnectError("offline"), ok(_cart(2)))

    async def scenario():
        store = CartStore(api.client(), debounce_delay=0.01, retry_delay=0.01)
        first = await store.fetch()
        await asyncio.sleep(0.1)
        return store, first

    store, first = asyncio.run(scenario())

    assert isinstance(first.error, NetworkFailure)
    assert store.error is None
    assert store.subtotal == 300000
    assert len(api.calls("GET", "/cart")) == 2


def test_retry_is_not_repeated_after_a_second_failure():
    api = FakeApi().on("GET", "/cart", httpx.ConnectError("offline"))

    async def scenario():
        store = CartStore(api.client(), debounce_delay=0.01, retry_delay=0.01)
        await store.fetch()
        await asyncio.sleep(0.1)
        return store

    store = asyncio.run(scenario())

    assert isinstance(store.error, NetworkFailure)
    assert len(api.calls("GET", "/cart")) == 2


def test_rejected_fetch_is_not_retried():
    api = FakeApi().on("GET", "/cart", fail(401, "Authentication required"))

    async def scenario():
        store = CartStore(api.client(), debounce_delay=0.01, retry_delay=0.01)
        result = await store.fetch()
        await asyncio.sleep(0.05)
        return result

    result = asyncio.run(scenario())

    assert not result.success
    assert len(api.calls("GET", "/cart")) == 1


def test_close_cancels_a_pending_retry():
    api = FakeApi().on("GET", "/cart", httpx.ConnectError("offline"), ok(_cart(2)))

    async def scenario():
        store = CartStore(api.client(), debounce_delay=0.01, retry_delay=0.02)
        await store.fetch()
        store.close()
        await asyncio.sleep(0.06)

    asyncio.run(scenario())

    assert len(api.calls("GET", "/cart")) == 1
