"""Tests for the checkout wizard."""

import asyncio

import httpx

from storefront.core.state import CheckoutStep, PaymentMethod
from storefront.exceptions import NetworkFailure, RejectedByServer, ValidationError
from storefront.services.cart_store import CartStore
from storefront.services.checkout import CheckoutWizard
from storefront.services.discounts import DiscountResolver
from storefront.services.loyalty import LoyaltyRedeemer
from helpers import FakeApi, address_data, cart_data, fail, ok, order_data

CART = cart_data(("var-1", 250000, 2, 5))
SAVED = [
    {"_id": "addr-1", "isDefault": False, **address_data(city="Da Nang")},
    {"_id": "addr-2", "isDefault": True, **address_data(city="Hue")},
]


def _fill_form(wizard: CheckoutWizard, **overrides: str) -> None:
    fields = {
        "full_name": "An Pham",
        "phone_number": "0912345678",
        "address_line1": "1 Le Loi",
        "city": "Hanoi",
        "state": "Hoan Kiem",
        "postal_code": "100000",
        "country": "Vietnam",
    }
    fields.update(overrides)
    wizard.update_address(**fields)


async def _wizard(api: FakeApi, guest: bool = True) -> CheckoutWizard:
    client = api.client(auth_token=None if guest else "token-1")
    store = CartStore(client, debounce_delay=0.01)
    discounts = DiscountResolver(client, store)
    loyalty = LoyaltyRedeemer(client, store, discounts, debounce_delay=0.01)
    await store.fetch()
    return CheckoutWizard(client, store, discounts, loyalty, shipping_fee=35000)


def _to_review(wizard: CheckoutWizard) -> None:
    assert wizard.next().success
    wizard.set_payment_method("cod")
    assert wizard.next().success


def test_guest_detection_follows_the_client():
    api = FakeApi().on("GET", "/cart", ok(CART))

    async def scenario():
        guest = await _wizard(api, guest=True)
        member = await _wizard(api, guest=False)
        return guest.is_guest, member.is_guest

    assert asyncio.run(scenario()) == (True, False)


def test_incomplete_address_blocks_shipping_step():
    api = FakeApi().on("GET", "/cart", ok(CART))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        _fill_form(wizard, postal_code="")
        return wizard, wizard.next()

    wizard, result = asyncio.run(scenario())

    assert not result.success
    assert isinstance(result.error, ValidationError)
    assert wizard.step == CheckoutStep.SHIPPING
    assert wizard.errors == {"postal_code": "Postal code is required"}


def test_editing_a_field_clears_its_error():
    api = FakeApi().on("GET", "/cart", ok(CART))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        _fill_form(wizard, postal_code="", city="")
        wizard.next()
        wizard.update_address(postal_code="100000")
        return wizard

    wizard = asyncio.run(scenario())

    assert wizard.errors == {"city": "City is required"}
    assert wizard.error is not None


def test_saved_default_address_is_preselected():
    api = FakeApi().on("GET", "/cart", ok(CART)).on("GET", "/users/addresses", ok(SAVED))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        await wizard.load_addresses()
        return wizard, wizard.next()

    wizard, result = asyncio.run(scenario())

    assert wizard.state.selected_address_id == "addr-2"
    assert result.success
    assert wizard.step == CheckoutStep.PAYMENT
    assert wizard.build_order_payload()["shippingAddress"]["city"] == "Hue"


def test_first_address_is_used_without_a_default():
    addresses = [dict(a, isDefault=False) for a in SAVED]
    api = FakeApi().on("GET", "/cart", ok(CART)).on("GET", "/users/addresses", ok(addresses))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        await wizard.load_addresses()
        return wizard

    wizard = asyncio.run(scenario())

    assert wizard.state.selected_address_id == "addr-1"


def test_no_saved_addresses_falls_back_to_the_form():
    api = FakeApi().on("GET", "/cart", ok(CART)).on("GET", "/users/addresses", ok([]))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        await wizard.load_addresses()
        blocked = wizard.next()
        _fill_form(wizard)
        return wizard, blocked, wizard.next()

    wizard, blocked, advanced = asyncio.run(scenario())

    assert wizard.state.selected_address_id is None
    assert not blocked.success
    assert advanced.success


def test_typing_in_the_form_deselects_the_saved_address():
    api = FakeApi().on("GET", "/cart", ok(CART)).on("GET", "/users/addresses", ok(SAVED))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        await wizard.load_addresses()
        wizard.update_address(full_name="Someone Else")
        return wizard

    wizard = asyncio.run(scenario())

    assert wizard.state.selected_address_id is None
    assert wizard.select_address("addr-1").success
    assert not wizard.select_address("addr-404").success


def test_payment_step_requires_a_method():
    api = FakeApi().on("GET", "/cart", ok(CART))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        _fill_form(wizard)
        wizard.next()
        blocked = wizard.next()
        bad = wizard.set_payment_method("bitcoin")
        wizard.set_payment_method(PaymentMethod.BANK)
        return wizard, blocked, bad, wizard.next()

    wizard, blocked, bad, advanced = asyncio.run(scenario())

    assert blocked.error.field == "payment_method"
    assert not bad.success
    assert advanced.success
    assert wizard.step == CheckoutStep.REVIEW


def test_back_is_always_allowed():
    api = FakeApi().on("GET", "/cart", ok(CART))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        _fill_form(wizard)
        _to_review(wizard)
        steps = [wizard.step]
        wizard.back()
        steps.append(wizard.step)
        wizard.back()
        steps.append(wizard.step)
        wizard.back()
        steps.append(wizard.step)
        return steps

    assert asyncio.run(scenario()) == [
        CheckoutStep.REVIEW,
        CheckoutStep.PAYMENT,
        CheckoutStep.SHIPPING,
        CheckoutStep.SHIPPING,
    ]


def test_breakdown_is_recomputed_on_transition():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(CART))
        .on("POST", "/orders/verify-discount", ok({"code": "SAVE5", "discountAmount": 50000}))
    )

    async def scenario():
        wizard = await _wizard(api, guest=False)
        before = wizard.breakdown.total
        await wizard._discounts.apply("SAVE5")
        _fill_form(wizard)
        wizard.next()
        return before, wizard.breakdown

    before, breakdown = asyncio.run(scenario())

    assert before == 535000
    assert breakdown.discount_amount == 50000
    assert breakdown.total == 485000


def test_guest_payload_carries_email_and_no_points():
    api = FakeApi().on("GET", "/cart", ok(CART))

    async def scenario():
        wizard = await _wizard(api, guest=True)
        _fill_form(wizard)
        wizard.set_email(" an@example.com ")
        wizard.set_notes("Leave at the door")
        _to_review(wizard)
        return wizard.build_order_payload()

    payload = asyncio.run(scenario())

    assert payload == {
        "shippingAddress": address_data(),
        "paymentMethod": "cod",
        "discountCode": None,
        "loyaltyPointsUsed": 0,
        "notes": "Leave at the door",
        "email": "an@example.com",
    }


def test_confirm_places_order_and_clears_cart():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(CART))
        .on("POST", "/orders", (201, {"success": True, "data": order_data(535000)}))
        .on("DELETE", "/cart", ok(cart_data()))
    )

    async def scenario():
        wizard = await _wizard(api, guest=False)
        _fill_form(wizard)
        _to_review(wizard)
        result = await wizard.confirm()
        return wizard, result

    wizard, result = asyncio.run(scenario())

    assert result.success
    assert wizard.step == CheckoutStep.SUBMITTED
    assert wizard.order.order_number == "ORD-TEST-0001"
    assert wizard.order.total == 535000
    assert wizard._cart.cart.is_empty
    assert len(api.calls("POST", "/orders")) == 1


def test_confirm_falls_back_to_local_reset_when_clear_fails():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(CART))
        .on("POST", "/orders", (201, {"success": True, "data": order_data()}))
        .on("DELETE", "/cart", httpx.ConnectError("offline"))
    )

    async def scenario():
        wizard = await _wizard(api, guest=False)
        _fill_form(wizard)
        _to_review(wizard)
        await wizard.confirm()
        return wizard

    wizard = asyncio.run(scenario())

    assert wizard.is_submitted
    assert wizard._cart.cart.is_empty


def test_confirm_outside_review_is_refused():
    api = FakeApi().on("GET", "/cart", ok(CART))

    async def scenario():
        wizard = await _wizard(api, guest=False)
        return await wizard.confirm()

    result = asyncio.run(scenario())

    assert isinstance(result.error, ValidationError)
    assert api.calls("POST", "/orders") == []


def test_server_rejection_stays_on_review():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(CART))
        .on("POST", "/orders", fail(400, "Not enough inventory: only 1 units of Tee available"))
    )

    async def scenario():
        wizard = await _wizard(api, guest=False)
        _fill_form(wizard)
        _to_review(wizard)
        return wizard, await wizard.confirm()

    wizard, result = asyncio.run(scenario())

    assert isinstance(result.error, RejectedByServer)
    assert wizard.step == CheckoutStep.REVIEW
    assert wizard.error == "Not enough inventory: only 1 units of Tee available"
    assert not wizard.submitting


def test_network_failure_stays_on_review_with_cart_intact():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(CART))
        .on("POST", "/orders", httpx.ConnectError("offline"))
    )

    async def scenario():
        wizard = await _wizard(api, guest=False)
        _fill_form(wizard)
        _to_review(wizard)
        return wizard, await wizard.confirm()

    wizard, result = asyncio.run(scenario())

    assert isinstance(result.error, NetworkFailure)
    assert wizard.step == CheckoutStep.REVIEW
    assert wizard.error is not None
    assert wizard._cart.subtotal == 500000
    assert api.calls("DELETE", "/cart") == []


def test_unreadable_saved_addresses_fall_back_to_the_form():
    api = (
        FakeApi()
        .on("GET", "/cart", ok(CART))
        .on("GET", "/users/addresses", ok([{"_id": "addr-1", "isDefault": "sometimes"}]))
    )

    async def scenario():
        wizard = await _wizard(api, guest=False)
        result = await wizard.load_addresses()
        _fill_form(wizard)
        return wizard, result, wizard.next()

    wizard, result, advanced = asyncio.run(scenario())

    assert isinstance(result.error, RejectedByServer)
    assert wizard.state.saved_addresses == []
    assert wizard.state.selected_address_id is None
    assert advanced.success
