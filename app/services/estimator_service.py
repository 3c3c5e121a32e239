import logging
import re

from ..core.config import Settings, settings as default_settings
from ..core.utils import extract_price
from ..data.base import (
    FIELD_NAMES,
    AgeBracket,
    Editing,
    EstimationResult,
    EstimatorState,
    FormInput,
    Loading,
    ShowingResult,
    ValidationErrors,
    WearLevel,
)
from ..models.base import CompletionClient, CompletionConfig, TransportError
from ..models.http_model import HttpCompletionClient
from ..models.mock_model import MockCompletionClient
from ..models.openai_model import OpenAICompletionClient

logger = logging.getLogger(__name__)

# Non-negative amount with an optional 1–2 digit fraction
PRICE_PATTERN = re.compile(r"\d+(\.\d{1,2})?", re.ASCII)

FAILURE_MESSAGE = "We couldn't get an estimate right now. Please try again."

class UnknownFieldError(KeyError):
    """update_field was given a name that is not on the form."""

class EstimatorBusyError(RuntimeError):
    """An estimate is already in flight for this form."""

def validate(form: FormInput) -> ValidationErrors:
    """Per-field messages for everything wrong with `form`; {} when it can be sent."""
    errors: ValidationErrors = {}
    if not form.brand.strip():
        errors["brand"] = "Brand name is required"
    if not form.category.strip():
        errors["category"] = "Category is required"
    if not form.original_price.strip():
        errors["original_price"] = "Original price is required"
    elif not PRICE_PATTERN.fullmatch(form.original_price):
        errors["original_price"] = "Please enter a valid number"
    return errors

def build_prompt(form: FormInput) -> str:
    return (
        f"Estimate the resale value of a {form.category} from {form.brand} "
        f"that is {form.wear_level.value} and {form.age_bracket.value} old. "
        f"The original price was ${form.original_price}. "
        "Output only the number amount you think it would cost."
    )

def completion_client(cfg: Settings = default_settings) -> CompletionClient:
    """
    Pick the completion provider based on env.
    The credential is handed to the client here and nowhere else.
    """
    config = CompletionConfig(
        model=cfg.OPENAI_MODEL,
        max_tokens=cfg.OPENAI_MAX_TOKENS,
        temperature=cfg.OPENAI_TEMPERATURE,
        system_prompt=cfg.OPENAI_SYSTEM_PROMPT,
    )
    provider = cfg.COMPLETION_PROVIDER
    if provider == "openai":
        return OpenAICompletionClient(cfg.OPENAI_API_KEY, config)
    if provider == "http":
        if not cfg.COMPLETION_BASE_URL:
            raise RuntimeError("COMPLETION_BASE_URL is required for the http provider")
        return HttpCompletionClient(cfg.COMPLETION_BASE_URL, config, api_key=cfg.OPENAI_API_KEY)
    return MockCompletionClient()

class EstimatorFormController:
    """
    Owns one form and walks it through
      Editing → Loading → ShowingResult
    with a single completion request per submit.

    Only one request can be in flight: while Loading, submit and
    update_field raise EstimatorBusyError. reset always goes through.
    """
    def __init__(self, client: CompletionClient, form: FormInput | None = None):
        self.client = client
        self.form = form or FormInput()
        self.state: EstimatorState = Editing()
        # True while a completion request is outstanding, even after a reset
        self._in_flight = False

    # --- read side -------------------------------------------------------

    @property
    def loading(self) -> bool:
        return isinstance(self.state, Loading)

    @property
    def result(self) -> EstimationResult | None:
        return self.state.result if isinstance(self.state, ShowingResult) else None

    @property
    def errors(self) -> ValidationErrors:
        return dict(self.state.errors) if isinstance(self.state, Editing) else {}

    @property
    def failure(self) -> str | None:
        return self.state.failure if isinstance(self.state, Editing) else None

    # --- operations ------------------------------------------------------

    def update_field(self, name: str, value: str) -> None:
        if name not in FIELD_NAMES:
            raise UnknownFieldError(name)
        self._ensure_idle()

        if name == "wear_level":
            value = WearLevel(value)
        elif name == "age_bracket":
            value = AgeBracket(value)
        setattr(self.form, name, value)

        if isinstance(self.state, ShowingResult):
            # Editing the item again retires the estimate shown for it
            self.state = Editing()
        elif name in self.state.errors:
            errors = {k: v for k, v in self.state.errors.items() if k != name}
            self.state = Editing(errors=errors, failure=self.state.failure)

    async def submit(self) -> EstimatorState:
        if self._in_flight or self.loading:
            raise EstimatorBusyError("an estimate is already in progress")

        errors = validate(self.form)
        if errors:
            logger.info("estimate rejected: invalid fields %s", sorted(errors))
            self.state = Editing(errors=errors)
            return self.state

        submitted = self.form.snapshot()
        loading = Loading(submitted=submitted)
        self.state = loading
        self._in_flight = True
        try:
            reply = await self.client.get_completion(build_prompt(submitted))
            price = extract_price(reply)
        except TransportError as exc:
            logger.warning("completion request failed: %s", exc, exc_info=True)
            if self.state is loading:
                self.state = Editing(failure=FAILURE_MESSAGE)
            return self.state
        except BaseException:
            # Propagate, but never leave the form stuck loading
            if self.state is loading:
                self.state = Editing(failure=FAILURE_MESSAGE)
            raise
        finally:
            self._in_flight = False

        if self.state is not loading:
            logger.info("dropping estimate for %s %s: form was reset", submitted.brand, submitted.category)
            return self.state

        logger.info("estimate ready: %s %s -> %s", submitted.brand, submitted.category, price)
        self.state = ShowingResult(EstimationResult(estimated_price=price, source_input=submitted))
        return self.state

    def reset(self) -> None:
        """Back to an empty form. Allowed at any time; a reply still in flight is discarded."""
        self.form = FormInput()
        self.state = Editing()

    def _ensure_idle(self) -> None:
        if self.loading:
            raise EstimatorBusyError("an estimate is already in progress")
