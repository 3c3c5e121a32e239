"""Estimator form controller: state transitions around one completion request."""

import asyncio

import httpx
import pytest

from app.data.base import (
    AgeBracket,
    Editing,
    FormInput,
    ShowingResult,
    WearLevel,
)
from app.models.base import CompletionConfig, TransportError
from app.models.http_model import HttpCompletionClient
from app.services.estimator_service import (
    FAILURE_MESSAGE,
    EstimatorBusyError,
    EstimatorFormController,
    UnknownFieldError,
)


class GatedCompletionClient:
    """Holds every request open until `release` is set."""

    def __init__(self, reply: str = "32"):
        self.reply = reply
        self.prompts: list[str] = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def get_completion(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.started.set()
        await self.release.wait()
        return self.reply


def _fill(controller, **overrides):
    values = {
        "brand": "Nike",
        "category": "Hoodie",
        "original_price": "80",
        "wear_level": "Light Wear",
        "age_bracket": "1-2 years",
    }
    values.update(overrides)
    for name, value in values.items():
        controller.update_field(name, value)


def test_starts_editing_with_defaults(stub_client):
    controller = EstimatorFormController(stub_client)

    assert controller.state == Editing()
    assert controller.form == FormInput()
    assert controller.form.wear_level is WearLevel.NOT_WORN
    assert controller.form.age_bracket is AgeBracket.LESS_THAN_1_YEAR
    assert not controller.loading
    assert controller.result is None


def test_successful_estimate_keeps_snapshot_of_input(stub_client):
    controller = EstimatorFormController(stub_client)
    _fill(controller)

    state = asyncio.run(controller.submit())

    assert isinstance(state, ShowingResult)
    assert state.result.estimated_price == "32"
    assert state.result.source_input == FormInput(
        brand="Nike",
        category="Hoodie",
        original_price="80",
        wear_level=WearLevel.LIGHT,
        age_bracket=AgeBracket.ONE_TO_TWO_YEARS,
    )
    assert stub_client.prompts == [
        "Estimate the resale value of a Hoodie from Nike that is Light Wear and 1-2 years old. "
        "The original price was $80. Output only the number amount you think it would cost."
    ]

    # The stored input is a copy, not the live form
    controller.form.brand = "Adidas"
    assert controller.result.source_input.brand == "Nike"


def test_reply_is_reduced_to_its_number(stub_client):
    stub_client.reply = "$45.00 approximately"
    controller = EstimatorFormController(stub_client)
    _fill(controller)

    asyncio.run(controller.submit())

    assert controller.result.estimated_price == "45.00"


def test_reply_without_digits_becomes_zero(stub_client):
    stub_client.reply = "I cannot estimate"
    controller = EstimatorFormController(stub_client)
    _fill(controller)

    asyncio.run(controller.submit())

    assert controller.result.estimated_price == "0"


def test_invalid_form_never_reaches_the_model(stub_client):
    controller = EstimatorFormController(stub_client)
    _fill(controller, brand="", original_price="eighty")

    state = asyncio.run(controller.submit())

    assert state == Editing(errors={
        "brand": "Brand name is required",
        "original_price": "Please enter a valid number",
    })
    assert stub_client.prompts == []
    assert controller.result is None


def test_editing_a_field_clears_only_its_error(stub_client):
    controller = EstimatorFormController(stub_client)
    asyncio.run(controller.submit())
    assert set(controller.errors) == {"brand", "category", "original_price"}

    controller.update_field("brand", "Nike")

    assert set(controller.errors) == {"category", "original_price"}


def test_update_field_rejects_unknown_names_and_choices(stub_client):
    controller = EstimatorFormController(stub_client)

    with pytest.raises(UnknownFieldError):
        controller.update_field("colour", "red")
    with pytest.raises(ValueError):
        controller.update_field("wear_level", "Destroyed")

    assert controller.form == FormInput()


def test_transport_failure_returns_to_editing(stub_client):
    stub_client.error = TransportError("connection reset")
    controller = EstimatorFormController(stub_client)
    _fill(controller)

    state = asyncio.run(controller.submit())

    assert state == Editing(failure=FAILURE_MESSAGE)
    assert not controller.loading
    assert controller.result is None
    assert controller.form.brand == "Nike"

    # The next attempt goes through normally
    stub_client.error = None
    state = asyncio.run(controller.submit())

    assert isinstance(state, ShowingResult)
    assert controller.failure is None
    assert len(stub_client.prompts) == 2


def test_unexpected_error_propagates_without_sticking_in_loading(stub_client):
    stub_client.error = RuntimeError("bug in client")
    controller = EstimatorFormController(stub_client)
    _fill(controller)

    with pytest.raises(RuntimeError):
        asyncio.run(controller.submit())

    assert not controller.loading
    assert controller.result is None


def test_second_submit_while_loading_sends_nothing():
    async def scenario():
        client = GatedCompletionClient()
        controller = EstimatorFormController(client)
        _fill(controller)

        first = asyncio.create_task(controller.submit())
        await client.started.wait()
        assert controller.loading

        with pytest.raises(EstimatorBusyError):
            await controller.submit()
        with pytest.raises(EstimatorBusyError):
            controller.update_field("brand", "Adidas")

        client.release.set()
        return client, controller, await first

    client, controller, state = asyncio.run(scenario())

    assert len(client.prompts) == 1
    assert isinstance(state, ShowingResult)
    assert controller.form.brand == "Nike"


def test_reset_restores_defaults_from_any_state(stub_client):
    controller = EstimatorFormController(stub_client)
    _fill(controller)
    asyncio.run(controller.submit())
    assert controller.result is not None

    controller.reset()
    assert controller.state == Editing()
    assert controller.form == FormInput()
    assert controller.result is None

    controller.reset()
    assert controller.state == Editing()
    assert controller.form == FormInput()


def test_reset_during_loading_discards_late_reply():
    async def scenario():
        client = GatedCompletionClient()
        controller = EstimatorFormController(client)
        _fill(controller)

        first = asyncio.create_task(controller.submit())
        await client.started.wait()

        controller.reset()
        assert controller.state == Editing()
        assert controller.form == FormInput()

        # The earlier request is still out, so a new one must wait for it
        _fill(controller)
        with pytest.raises(EstimatorBusyError):
            await controller.submit()

        client.release.set()
        return client, controller, await first

    client, controller, state = asyncio.run(scenario())

    assert state == Editing()
    assert controller.result is None
    assert controller.form.brand == "Nike"
    assert len(client.prompts) == 1

    # Once the old reply is in, the form can be sent again
    client.release.set()
    assert isinstance(asyncio.run(controller.submit()), ShowingResult)


def test_malformed_gateway_reply_leaves_form_usable():
    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": 32}}]})

    client = HttpCompletionClient(
        "https://gateway.test/v1",
        CompletionConfig(model="gpt-4o-mini-2024-07-18"),
        transport=httpx.MockTransport(handler),
    )
    controller = EstimatorFormController(client)
    _fill(controller)

    state = asyncio.run(controller.submit())

    assert state == Editing(failure=FAILURE_MESSAGE)
    assert not controller.loading
    controller.reset()
    controller.update_field("brand", "Adidas")
    assert controller.form.brand == "Adidas"


def test_reply_that_is_not_text_never_sticks_in_loading(stub_client):
    stub_client.reply = 32
    controller = EstimatorFormController(stub_client)
    _fill(controller)

    with pytest.raises(TypeError):
        asyncio.run(controller.submit())

    assert not controller.loading
    controller.reset()
    assert controller.state == Editing()


def test_editing_after_a_result_returns_to_the_form(stub_client):
    controller = EstimatorFormController(stub_client)
    _fill(controller)
    asyncio.run(controller.submit())
    assert controller.result is not None

    controller.update_field("original_price", "120")

    assert controller.state == Editing()
    assert controller.result is None
    assert controller.form.original_price == "120"
